def size_fmt(num: float, suffix: str = "B") -> str:
    for unit in ["", "K", "M", "G", "T", "P", "E", "Z"]:
        if abs(num) < 1024.0:
            return f"{num:5.3f}{unit}{suffix}"
        num /= 1024.0
    return f"{num:.1f}Y{suffix}"


def weight_fmt(value: float, unit: str = "ms") -> str:
    if unit == "bytes":
        return size_fmt(value)
    if unit == "samples":
        return f"{value:,.0f} samp"
    return f"{value:,.2f} {unit}".rstrip()


def weight_to_color(proportion_of_total: float) -> str:
    if proportion_of_total > 0.6:
        return "red"
    elif proportion_of_total > 0.2:
        return "yellow"
    elif proportion_of_total > 0.05:
        return "green"
    else:
        return "bright_green"


def shorten_name(name: str, max_length: int = 80) -> str:
    if len(name) <= max_length:
        return name
    return name[: max_length - 3] + "..."
