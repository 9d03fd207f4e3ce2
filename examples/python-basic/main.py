import os

from swarmauth import KeyMaterial, SigningConfig, StorageRequestBuilder

seed_hex = os.getenv("SWARM_SEED_HEX")
keys = KeyMaterial.from_seed_hex(seed_hex) if seed_hex else KeyMaterial.generate()
config = SigningConfig.session() if os.getenv("SWARM_SESSION_ID") == "1" else SigningConfig()

builder = StorageRequestBuilder(keys, config)
print("account:", builder.pubkey)
print(builder.store(b"hello swarm", namespace=int(os.getenv("SWARM_NAMESPACE", "0"))).to_json())
print(builder.retrieve().to_json())
