import re

# Decimal ("5799633565432596414") or hex ("0xaabbccfffeddeeff")
_HEX_CLOCK_ID = re.compile(r"0[xX][0-9a-fA-F]+")
_DEC_CLOCK_ID = re.compile(r"[0-9]+")
_ALPHANUM_DASH = re.compile(r"[a-zA-Z0-9_-]+")


def is_valid_clock_id(value: str) -> bool:
    return bool(_HEX_CLOCK_ID.fullmatch(value) or _DEC_CLOCK_ID.fullmatch(value))


def is_alphanum_dash(value: str) -> bool:
    return bool(_ALPHANUM_DASH.fullmatch(value))


def check_clock_id(value: str) -> None:
    """Raise ValueError unless value is a decimal or 0x-prefixed hex clock ID."""
    if not is_valid_clock_id(value):
        raise ValueError(f"invalid clock ID format: {value} (must be decimal or hex)")


def check_alphanum_dash(value: str) -> None:
    if not is_alphanum_dash(value):
        raise ValueError(
            f"value must contain only alphanumeric characters, dashes, and underscores: {value}"
        )
