"""
Utilidades de presentación
"""

_SIZES = ["Bytes", "KB", "MB", "GB"]


def format_file_size(size: int) -> str:
    """
    Formatea un tamaño en bytes para mostrarlo (1536 -> "1.5 KB")

    Args:
        size: Tamaño en bytes

    Returns:
        Texto legible con la unidad
    """
    if size <= 0:
        return "0 Bytes"

    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(_SIZES) - 1:
        value /= 1024
        unit += 1

    text = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{text} {_SIZES[unit]}"
