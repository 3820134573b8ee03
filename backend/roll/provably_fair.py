import hmac
import hashlib
import secrets

HOUSE_EDGE = 0.05

# Outcomes are multipliers scaled by 100; 100 is 1.00x, the house-edge bust.
MIN_OUTCOME = 100

E = 2 ** 52


def sha256_hex(value) -> str:
    if isinstance(value, str):
        value = value.encode("utf-8")
    return hashlib.sha256(value).hexdigest()


def generate_server_seed() -> str:
    return secrets.token_hex(32)  # 256-bit secret


def generate_commitment() -> str:
    # Independent random material, not a digest of the server seed.
    return sha256_hex(secrets.token_bytes(32))


def hmac_sha256(server_seed: str, message: str) -> str:
    return hmac.new(
        key=server_seed.encode("utf-8"),
        msg=message.encode("utf-8"),
        digestmod=hashlib.sha256,
    ).hexdigest()


def combine(server_seed: str, round_id) -> str:
    """Combined hash a round's outcome is derived from."""
    return hmac_sha256(server_seed, str(round_id))


def house_edge_modulus(house_edge=HOUSE_EDGE) -> int:
    # 5% -> 20: one round in twenty busts at 1.00x
    return int(100 / (float(house_edge) * 100))


def is_hash_divisible(combined: str, mod: int) -> bool:
    """
    Fold the hex string into ``mod`` 16 bits at a time.

    A leading partial chunk (``len % 4`` digits) is folded first, then every
    following 4-digit chunk in order.
    """
    val = 0

    o = len(combined) % 4
    i = o - 4 if o > 0 else 0
    while i < len(combined):
        chunk = combined[max(i, 0):i + 4]
        val = ((val << 16) + int(chunk, 16)) % mod
        i += 4

    return val == 0


def compute_outcome(combined: str, house_edge=HOUSE_EDGE) -> int:
    """
    Map a combined hash to a round outcome (multiplier x100).

    Rounds whose hash is divisible by the house-edge modulus bust at exactly
    100. Every other round takes the leading 52 bits ``h`` and returns
    ``floor((100e - h) / (e - h))`` with ``e = 2**52``, computed in exact
    integer arithmetic so that any verifier reproduces it bit for bit.
    """
    if is_hash_divisible(combined, house_edge_modulus(house_edge)):
        return MIN_OUTCOME

    h = int(combined[:13], 16)
    return (100 * E - h) // (E - h)


def generate_round_result(server_seed: str, round_id, house_edge=HOUSE_EDGE) -> int:
    return compute_outcome(combine(server_seed, round_id), house_edge)


def verify_round(server_seed: str, round_id, outcome: int, house_edge=HOUSE_EDGE) -> bool:
    expected = generate_round_result(server_seed, round_id, house_edge)
    return expected == int(outcome)
