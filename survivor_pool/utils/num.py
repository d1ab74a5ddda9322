def to_int(value, default: int = 0) -> int:
    """Convert an ESPN score (int, numeric string, or {value, displayValue}) to int safely."""
    if isinstance(value, dict):
        value = value.get("displayValue", value.get("value"))
    try:
        return int(float(value)) if value is not None else default
    except (TypeError, ValueError):
        return default
