import argparse
import asyncio
import json

import uvicorn

from cardshare.core.config import settings
from cardshare.core.container import DependencyContainer
from cardshare.core.exceptions.base import AppError
from cardshare.core.logging import setup_logging


def parse_arguments():
    parser = argparse.ArgumentParser(description='Publish cards and share them by link.')
    subparsers = parser.add_subparsers(dest='command', required=True)

    serve = subparsers.add_parser('serve', help='Run the HTTP API')
    serve.add_argument('--host', default='127.0.0.1', help='Interface to bind')
    serve.add_argument('--port', type=int, default=8000, help='Port to bind')
    serve.add_argument('--reload', action='store_true', help='Reload on code changes')

    subparsers.add_parser('list', help='Print every stored card as JSON')

    share = subparsers.add_parser('share', help='Print the share view of a card as JSON')
    share.add_argument('card_id', help='Card identifier')
    share.add_argument('--base-url', default=settings.public_base_url or 'http://localhost:8000')

    return parser.parse_args()


async def list_cards() -> None:
    cards = await DependencyContainer.get_repository().list_cards()
    print(json.dumps([card.to_dict() for card in cards], indent=4, ensure_ascii=False))


async def share_card(card_id: str, base_url: str) -> None:
    view = await DependencyContainer.get_share_resolver().resolve(card_id, base_url)
    print(json.dumps(view.to_dict(), indent=4, ensure_ascii=False))


def main():
    args = parse_arguments()

    if args.command == 'serve':
        uvicorn.run('cardshare.api.main:app', host=args.host, port=args.port, reload=args.reload)
        return

    setup_logging('WARNING', settings.log_file)
    try:
        if args.command == 'list':
            asyncio.run(list_cards())
        elif args.command == 'share':
            asyncio.run(share_card(args.card_id, args.base_url))
    except AppError as e:
        print(f"Error occurred ({e.error_code}): {e.message}")
        raise SystemExit(1)


if __name__ == "__main__":
    main()
