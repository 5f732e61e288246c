def normalize_name(text) -> str:
    """Canonical display form: trimmed, single-spaced, each word capitalised.

    ``"  john q public "`` becomes ``"John Q Public"``. Returns an empty
    string for blank input; callers decide whether that is an error.
    """
    if text is None:
        return ''
    words = str(text).strip().lower().split(' ')
    return ' '.join(w[:1].upper() + w[1:] for w in words if w)


def names_match(a: str, b: str) -> bool:
    return normalize_name(a).casefold() == normalize_name(b).casefold()
