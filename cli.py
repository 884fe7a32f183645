#!/usr/bin/env python3
"""
shamir-split CLI: (k, n) threshold secret sharing over GF(2^31 - 1).

Usage:
    cli.py generate <secret> <n> <k>
    cli.py reconstruct <k>                       (reads "index value" lines from stdin)
    cli.py seal --message "secret" -n 5 -k 3 --output envelope.bin
    cli.py seal --file secret.pdf -n 5 -k 3 --output envelope.bin
    cli.py unseal --ciphertext envelope.bin -k 3 (reads share strings from stdin)
    cli.py verify                                (reads share strings from stdin)
"""

import argparse
import logging
import os
import sys

from shamir_split import envelope, shamir
from shamir_split.errors import ShamirError

LOG_LEVEL_ENV = 'SHAMIR_SPLIT_LOG_LEVEL'

logger = logging.getLogger('shamir_split.cli')


def configure_logging(verbose: bool = False):
    """Console logging for the CLI; level from --verbose or the environment."""
    root = logging.getLogger()
    level = 'DEBUG' if verbose else os.getenv(LOG_LEVEL_ENV, 'WARNING').upper()
    if not isinstance(logging.getLevelName(level), int):
        level = 'WARNING'
    root.setLevel(level)

    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(levelname)s - %(name)s - %(message)s'
    ))
    root.addHandler(handler)


def _read_lines(stream) -> list:
    return [line.strip() for line in stream if line.strip()]


def cmd_generate(args):
    """Split a short secret into n "index value" shares."""
    n, k = args.n, args.k
    if k > n:
        print("Error: threshold k cannot be greater than the total number of shares n.",
              file=sys.stderr)
        return 1

    shares = shamir.split_secret(args.secret.encode('utf-8'), n, k)
    for index, value in shares:
        print(f"{index} {value}")
    return 0


def cmd_reconstruct(args):
    """Read exactly k "index value" pairs from stdin and rebuild the secret."""
    k = args.k
    tokens = sys.stdin.read().split()
    if len(tokens) < 2 * k:
        print(f"Error: expected {k} shares ({2 * k} integers), got {len(tokens)} integers",
              file=sys.stderr)
        return 1

    try:
        numbers = [int(t) for t in tokens[:2 * k]]
    except ValueError as e:
        print(f"Error: shares must be integers: {e}", file=sys.stderr)
        return 1

    shares = list(zip(numbers[0::2], numbers[1::2]))
    secret = shamir.reconstruct_secret(shares, k)
    print(f"Reconstructed secret: {secret.decode('utf-8', errors='replace')}")
    return 0


def cmd_seal(args):
    """Encrypt a payload and print the key shares."""
    if args.message:
        payload = args.message.encode('utf-8')
        label = args.label or '(text message)'
    elif args.file:
        if not os.path.exists(args.file):
            print(f"Error: file not found: {args.file}", file=sys.stderr)
            return 1
        with open(args.file, 'rb') as f:
            payload = f.read()
        label = args.label or os.path.basename(args.file)
    else:
        payload = sys.stdin.buffer.read()
        label = args.label or '(stdin)'

    if not payload:
        print("Error: empty payload", file=sys.stderr)
        return 1

    env, shares = envelope.seal(payload, n=args.shares, k=args.threshold, label=label,
                                password=args.password)

    with open(args.output, 'wb') as f:
        f.write(env.ciphertext)

    print(f"Envelope ID: {env.envelope_id}", file=sys.stderr)
    print(f"Ciphertext:  {len(env.ciphertext)} bytes -> {args.output}", file=sys.stderr)
    print(f"Need {env.k} of {env.n} shares to open", file=sys.stderr)
    for share in shares:
        print(share)
    return 0


def cmd_unseal(args):
    """Open an envelope with share strings read from stdin."""
    shares = _read_lines(sys.stdin)
    if not os.path.exists(args.ciphertext):
        print(f"Error: ciphertext not found: {args.ciphertext}", file=sys.stderr)
        return 1
    with open(args.ciphertext, 'rb') as f:
        ciphertext = f.read()

    plaintext = envelope.unseal(shares, ciphertext, k=args.threshold, password=args.password)

    if args.output:
        with open(args.output, 'wb') as f:
            f.write(plaintext)
        print(f"Saved {len(plaintext)} bytes to: {args.output}", file=sys.stderr)
        return 0

    try:
        print(plaintext.decode('utf-8'))
    except UnicodeDecodeError:
        print("Binary payload, use --output to save to file", file=sys.stderr)
        return 1
    return 0


def cmd_verify(args):
    """Check share strings without decrypting."""
    result = envelope.verify_shares(_read_lines(sys.stdin))

    print(f"Valid:       {result['valid']}")
    print(f"Envelope ID: {result['envelope_id']}")
    print(f"Shares:      {result['share_count']}")
    print(f"Indices:     {result['indices']}")
    for e in result['errors']:
        print(f"  {e}")

    return 0 if result['valid'] else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='shamir-split',
        description="(k, n) threshold secret sharing over GF(2^31 - 1).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Split a short secret (3-of-5)
  %(prog)s generate hi 5 3

  # Rebuild it from three of the printed lines
  printf '1 ...\\n3 ...\\n5 ...\\n' | %(prog)s reconstruct 3

  # Seal a file of any size (2-of-3)
  %(prog)s seal --file notes.txt -n 3 -k 2 --output notes.bin > shares.txt

  # Open it
  head -2 shares.txt | %(prog)s unseal --ciphertext notes.bin -k 2
        """
    )
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')

    sub = parser.add_subparsers(dest='command', help='Command')

    p_generate = sub.add_parser('generate', help='Split a short secret into n shares')
    p_generate.add_argument('secret', help='Secret text (must fit in one field element)')
    p_generate.add_argument('n', type=int, help='Total shares (N)')
    p_generate.add_argument('k', type=int, help='Threshold to reconstruct (K)')

    p_reconstruct = sub.add_parser('reconstruct', help='Rebuild a secret from k shares on stdin')
    p_reconstruct.add_argument('k', type=int, help='Threshold (K)')

    p_seal = sub.add_parser('seal', help='Encrypt a payload and split its key')
    p_seal.add_argument('--message', '-m', help='Text message to protect')
    p_seal.add_argument('--file', '-f', help='File to protect')
    p_seal.add_argument('--shares', '-n', type=int, required=True, help='Total shares (N)')
    p_seal.add_argument('--threshold', '-k', type=int, required=True, help='Threshold (K)')
    p_seal.add_argument('--output', '-o', required=True, help='Ciphertext output file')
    p_seal.add_argument('--label', '-l', help='Human-readable label')
    p_seal.add_argument('--password', '-p', help='Password also required to open')

    p_unseal = sub.add_parser('unseal', help='Open an envelope with shares on stdin')
    p_unseal.add_argument('--ciphertext', '-c', required=True, help='Ciphertext file')
    p_unseal.add_argument('--threshold', '-k', type=int, required=True, help='Threshold (K)')
    p_unseal.add_argument('--output', '-o', help='Output file (default: print to stdout)')
    p_unseal.add_argument('--password', '-p', help='Password the envelope was sealed with')

    sub.add_parser('verify', help='Verify share strings on stdin without decrypting')

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 1

    handlers = {
        'generate': cmd_generate,
        'reconstruct': cmd_reconstruct,
        'seal': cmd_seal,
        'unseal': cmd_unseal,
        'verify': cmd_verify,
    }

    try:
        return handlers[args.command](args)
    except ShamirError as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
