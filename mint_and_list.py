"""Mint a BasicNft, approve the marketplace and list the token for 0.1 ETH."""

import argparse
import logging
import sys

from chain import parse_ether
from client import MarketplaceClient, APIError

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

PRICE = parse_ether("0.1")

def mint_and_list(client: MarketplaceClient, price: int = PRICE) -> int:
    marketplace = client.get_contract('NftMarketplace')
    basic_nft = client.get_contract('BasicNft')

    logger.info("Minting...")
    mint = client.mint_nft()
    token_id = mint['token_id']

    logger.info("Approving Nft...")
    client.approve(marketplace, token_id)

    logger.info("Listing NFT...")
    client.list_item(basic_nft, token_id, price)
    logger.info(f"Listed token {token_id}!")
    return token_id

def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--account', type=int, default=0, help="Index of the seller account")
    parser.add_argument('--price', default="0.1", help="Price in ETH")
    args = parser.parse_args()

    try:
        client = MarketplaceClient()
        client.login(account_index=args.account)
        mint_and_list(client, parse_ether(args.price))
    except APIError as e:
        logger.error(e)
        sys.exit(1)

if __name__ == "__main__":
    main()
