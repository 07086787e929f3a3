"""Command line interface for testing configuration loading"""
from . import settings_conf, is_development_chain
from pathlib import Path

def main():
    """Display loaded configuration"""
    print("\nSettings Configuration:")
    print("-" * 50)
    for key, value in settings_conf.items():
        if key == 'jwt_secret' and value:
            value = '********'
        print(f"{key}: {value}")
    print(f"\nDevelopment chain: {is_development_chain(settings_conf)}")
        
    # Save example configuration file
    example = Path("settings.conf.example")
    if not example.exists():
        with open(example, "w") as f:
            f.write("""[DEFAULT]
# Network name; development chains get a local in-process ledger
network = localhost
development_chains = hardhat,localhost
chain_id = 31337
accounts = 20
initial_balance = 10000
gas_price_gwei = 1

# Event indexer database
db_url = postgresql://postgres@localhost:5432/marketplace
indexer_enabled = true

# API server
api_host = 0.0.0.0
api_port = 8000
api_url = http://localhost:8000
jwt_secret =
session_expiry_days = 30
""")

if __name__ == "__main__":
    main()
