"""Buy a listed BasicNft, paying exactly the listed price."""

import argparse
import logging
import sys

from chain import format_ether
from client import MarketplaceClient, APIError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

TOKEN_ID = 0

def buy_item(client: MarketplaceClient, token_id: int = TOKEN_ID) -> dict:
    basic_nft = client.get_contract('BasicNft')
    listing = client.get_listing(basic_nft, token_id)
    price = int(listing['price'])
    receipt = client.buy_item(basic_nft, token_id, price)
    logger.info(f"NFT Bought for {format_ether(price)} ETH!")
    return receipt

def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--account', type=int, default=1, help="Index of the buyer account")
    parser.add_argument('--token-id', type=int, default=TOKEN_ID)
    args = parser.parse_args()

    try:
        client = MarketplaceClient()
        client.login(account_index=args.account)
        buy_item(client, args.token_id)
    except APIError as e:
        logger.error(e)
        sys.exit(1)

if __name__ == "__main__":
    main()
