"""Cancel a BasicNft listing."""

import argparse
import logging
import sys

from client import MarketplaceClient, APIError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

TOKEN_ID = 1

def cancel_listing(client: MarketplaceClient, token_id: int = TOKEN_ID) -> dict:
    basic_nft = client.get_contract('BasicNft')
    receipt = client.cancel_listing(basic_nft, token_id)
    logger.info("Item Cancelled!")
    return receipt

def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--account', type=int, default=0, help="Index of the seller account")
    parser.add_argument('--token-id', type=int, default=TOKEN_ID)
    args = parser.parse_args()

    try:
        client = MarketplaceClient()
        client.login(account_index=args.account)
        cancel_listing(client, args.token_id)
    except APIError as e:
        logger.error(e)
        sys.exit(1)

if __name__ == "__main__":
    main()
