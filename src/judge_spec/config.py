"""Judge configuration constants.

Per-instance settings (collateral percentage, reusability) are carried by the
CREATE_JUDGE payload; everything here is fixed protocol surface.
"""

# Units
COIN_DECIMALS = 8
COIN_VALUE = 10**COIN_DECIMALS

# Cooperative release
DEFAULT_COLLATERAL_PERCENTAGE = 1
MAX_COLLATERAL_PERCENTAGE = 100

# Commitment primitives
HASH_SIZE = 32  # BLAKE3-256 digest
SIGNATURE_SIZE = 65  # secp256k1 compact signature || recovery id
PUBLIC_KEY_SIZE = 33  # compressed secp256k1 point (= participant address)

# Resolver modules
RESOLVER_MODULE_MAGIC = b"\x7fELF"
MAX_MODULE_SIZE = 1_000_000

# Address derivation domain prefixes
JUDGE_ADDRESS_PREFIX = b"\xfe"
RESOLVER_ADDRESS_PREFIX = b"\xff"

# Account flags
ACCOUNT_FLAG_REJECT_FUNDS = 0x01

# Transfers
MAX_TRANSFER_COUNT = 500
