import secrets

# No 0/O or 1/I, so codes survive being read aloud or copied by hand.
ROOM_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"


def generate_room_code(length=6):
    return "".join(secrets.choice(ROOM_CODE_ALPHABET) for _ in range(length))


def normalize_room_code(raw_code):
    return (raw_code or "").strip().upper()
