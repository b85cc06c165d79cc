def empty_to_none(value: str | None) -> str | None:
    """Optional text columns store NULL, never the empty string."""
    if value is None or value == "":
        return None
    return value
