import pytest

from cardshare.core.exceptions.domain import CardNotFoundError
from cardshare.domain.asset.models import ImageInput
from cardshare.domain.card.models import Card


async def test_round_trip_from_add_to_share(ingest_service, share_resolver, submission, png_upload):
    card = await ingest_service.add_card(submission(front_image=ImageInput(upload=png_upload())))

    view = await share_resolver.resolve(card.id, "https://cards.example.com")

    assert (view.name, view.description, view.back_details, view.price) == (
        "Golden Dragon",
        "A rare holographic card",
        "Series 1, number 7",
        12.5,
    )
    assert view.images == [
        "https://cards.example.com/" + card.image,
        "https://cdn.example.com/dragon-back.png",
    ]
    assert view.first_image == view.images[0]
    assert view.share_link == f"https://cards.example.com/share?view={card.id}"


async def test_trailing_slash_on_base_url(ingest_service, share_resolver, submission, png_upload):
    card = await ingest_service.add_card(submission(front_image=ImageInput(upload=png_upload())))

    view = await share_resolver.resolve(card.id, "http://localhost:8000/")

    assert view.images[0] == "http://localhost:8000/" + card.image
    assert view.share_link.startswith("http://localhost:8000/share?view=")


async def test_share_link_encodes_the_id(repository, share_resolver):
    await repository.add(
        Card(
            id="card 1&2",
            name="Odd id",
            image="uploads/a.png",
            back_image="uploads/b.png",
            description="d",
            back_details="b",
            price=1,
        )
    )

    view = await share_resolver.resolve("card 1&2", "http://example.com")

    assert view.share_link == "http://example.com/share?view=card+1%262"


async def test_unknown_card_is_not_found(share_resolver):
    with pytest.raises(CardNotFoundError):
        await share_resolver.resolve("card-missing", "http://example.com")


async def test_view_serializes_to_share_payload(ingest_service, share_resolver, submission):
    card = await ingest_service.add_card(submission())

    payload = (await share_resolver.resolve(card.id, "http://example.com")).to_dict()

    assert payload["shareLink"] == f"http://example.com/share?view={card.id}"
    assert payload["card"]["backDetails"] == "Series 1, number 7"
    assert payload["card"]["firstImage"] == "https://cdn.example.com/dragon-front.png"


async def test_resolve_never_writes(ingest_service, share_resolver, submission, document_path):
    card = await ingest_service.add_card(submission())
    before = document_path.read_bytes()

    await share_resolver.resolve(card.id, "http://example.com")

    assert document_path.read_bytes() == before
