from __future__ import annotations

import json
import logging

from swarmauth import DelegationAuthority, KeyMaterial, Permission, StorageRequestBuilder, load_delegation


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    owner = KeyMaterial.generate()
    delegate = KeyMaterial.generate()

    # owner side: grant read access and hand over token + signature
    cert = DelegationAuthority(owner).create_delegation(delegate.public_key, Permission.READ)
    handoff = {"owner": owner.public_key.hex(), **cert.request_fields()}

    # delegate side
    received = load_delegation(handoff["subaccount"], handoff["subaccount_sig"], handoff["owner"])
    builder = StorageRequestBuilder.delegated(delegate, received)
    print(json.dumps(builder.retrieve(namespace=0).to_dict(), indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
