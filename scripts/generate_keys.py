#!/usr/bin/env python3
"""
Generate a secp256k1 signing key for the CITA client.

This script generates:
- Private key file (signing.key, hex)
- Key info file with the public key and account address
"""

import argparse
import json
import os
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from cita.config import ClientConfig
from cita.tx.signer import generate_test_key


def generate_keys(output_dir: str = "./keys") -> dict:
    """
    Generate a new key pair.

    Args:
        output_dir: Directory to save keys

    Returns:
        Dictionary with key info and address
    """
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    signer = generate_test_key(ClientConfig())

    key_path = output_path / "signing.key"
    key_path.write_text(signer.export_key() + "\n", encoding="utf-8")
    os.chmod(key_path, 0o600)

    info = {
        "signing_key_path": str(key_path),
        "public_key": "0x" + signer.public_key.hex(),
        "address": signer.address,
    }

    info_path = output_path / "key_info.json"
    with open(info_path, "w") as f:
        json.dump(info, f, indent=2)

    return info


def main():
    parser = argparse.ArgumentParser(description="Generate a CITA signing key")
    parser.add_argument(
        "--output-dir", "-o",
        default="./keys",
        help="Output directory for keys (default: ./keys)"
    )
    args = parser.parse_args()

    info = generate_keys(args.output_dir)

    print(f"Signing key: {info['signing_key_path']}")
    print(f"Address:     {info['address']}")
    print()
    print("Load it with:")
    print(f"  export CITA_PRIVATE_KEY=$(cat {info['signing_key_path']})")


if __name__ == "__main__":
    main()
