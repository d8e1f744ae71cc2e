import pytest
from fastapi.testclient import TestClient

from cardshare.api.main import create_app
from cardshare.core.config import Settings
from cardshare.domain.asset.models import ImageInput, UploadedImage
from cardshare.domain.asset.service import AssetStore
from cardshare.domain.card.service import CardSubmission, IngestService
from cardshare.domain.share.service import ShareResolver
from cardshare.repositories.card_repository import JSONCardRepository

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def document_path(tmp_path):
    return tmp_path / "data" / "cards.json"


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "public" / "uploads"


@pytest.fixture
def repository(document_path):
    return JSONCardRepository(str(document_path), lock_timeout=2.0)


@pytest.fixture
def asset_store(upload_dir):
    return AssetStore(str(upload_dir), url_prefix="uploads")


@pytest.fixture
def ingest_service(repository, asset_store):
    return IngestService(repository, asset_store)


@pytest.fixture
def share_resolver(repository):
    return ShareResolver(repository)


@pytest.fixture
def png_upload():
    def make(filename="front.png", content=PNG_BYTES, **kwargs):
        return UploadedImage(filename=filename, content_type="image/png", content=content, **kwargs)

    return make


@pytest.fixture
def submission():
    def make(**overrides):
        data = dict(
            name="Golden Dragon",
            description="A rare holographic card",
            back_details="Series 1, number 7",
            price="12.50",
            front_image=ImageInput(url="https://cdn.example.com/dragon-front.png"),
            back_image=ImageInput(url="https://cdn.example.com/dragon-back.png"),
        )
        data.update(overrides)
        return CardSubmission(**data)

    return make


@pytest.fixture
def test_settings(tmp_path, upload_dir):
    return Settings(
        data_dir=str(tmp_path / "data"),
        upload_dir=str(upload_dir),
        upload_url_prefix="uploads",
        rate_limit_calls=1000,
        log_level="WARNING",
    )


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def uploaded_files(upload_dir):
    def list_files():
        if not upload_dir.exists():
            return []
        return sorted(p.name for p in upload_dir.iterdir())

    return list_files
