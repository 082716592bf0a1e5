# scripts/gen_cert.py
"""Issue a self-signed server certificate for local testing and print its pin."""
import argparse
import os
from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from chatclient.crypto.pki import FINGERPRINT_ENV, get_cert_fingerprint, load_cert


def issue_self_signed(cn: str, out_prefix: str, days: int = 365) -> x509.Certificate:
    out_dir = os.path.dirname(out_prefix)
    if out_dir:
        os.makedirs(out_dir, exist_ok=True)
    key_path = f"{out_prefix}.key"
    cert_path = f"{out_prefix}.crt"

    # 1) Generate server keypair
    key = ec.generate_private_key(ec.SECP256R1())

    # 2) Build self-signed certificate
    name = x509.Name([
        x509.NameAttribute(NameOID.ORGANIZATION_NAME, "SecureChat"),
        x509.NameAttribute(NameOID.COMMON_NAME, cn),
    ])

    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=days))
        .add_extension(x509.SubjectAlternativeName([x509.DNSName(cn)]), critical=False)
        .sign(private_key=key, algorithm=hashes.SHA256())
    )

    # 3) Write private key
    with open(key_path, "wb") as f:
        f.write(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )

    # 4) Write certificate
    with open(cert_path, "wb") as f:
        f.write(cert.public_bytes(serialization.Encoding.PEM))

    print(f"[+] Server key:  {key_path}")
    print(f"[+] Server cert: {cert_path}")
    return cert


def print_pin(cert: x509.Certificate) -> None:
    print(f"export {FINGERPRINT_ENV}={get_cert_fingerprint(cert)}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Issue a self-signed chat server certificate")
    parser.add_argument("--cn", default="localhost", help="Common Name / DNS name for the certificate")
    parser.add_argument("--out", default="certs/server", help="Output prefix (e.g., certs/server)")
    parser.add_argument("--days", type=int, default=365, help="Validity in days")
    parser.add_argument("--show", metavar="PATH", help="Only print the pin of an existing PEM certificate")
    args = parser.parse_args()

    if args.show:
        print_pin(load_cert(args.show))
    else:
        print_pin(issue_self_signed(args.cn, args.out, args.days))
