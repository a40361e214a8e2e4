import argparse
import logging

import uvicorn

from blink.app import create_app
from blink.config import Settings


def main():
    parser = argparse.ArgumentParser(description='Serve a Solana Action that stakes SOL with one validator.')
    parser.add_argument('--host', metavar='HOST', type=str, default='127.0.0.1',
                        help='Interface to listen on, e.g. 0.0.0.0')
    parser.add_argument('--port', metavar='PORT', type=int, default=8000,
                        help='Port to listen on, e.g. 8000')
    parser.add_argument('--endpoint', metavar='ENDPOINT_URL', type=str, default=None,
                        help='RPC endpoint to use instead of RPC_URL, e.g. https://api.mainnet-beta.solana.com')

    args = parser.parse_args()
    settings = Settings()
    if args.endpoint:
        settings = settings.model_copy(update={'RPC_URL': args.endpoint})
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )
    uvicorn.run(create_app(settings), host=args.host, port=args.port, log_level=settings.LOG_LEVEL.lower())


if __name__ == "__main__":
    main()
