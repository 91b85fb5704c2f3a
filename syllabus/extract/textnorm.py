import re

_NBSP = "\u00a0"
_THIN = "\u2009"
_NNBSP = "\u202f"

_RE_SOFT_HYPHEN = re.compile("\u00ad")
_RE_CRLF = re.compile(r"\r\n?")
_RE_SPECIAL_SPACES = re.compile("[{}]".format(re.escape(_NBSP + _THIN + _NNBSP)))


def normalize_text(text: str) -> str:
    """
    Prepare reconstructed or OCR text for matching: LF line endings only,
    exotic spaces as plain spaces, soft hyphens removed.
    """
    if not text:
        return text
    s = text

    # 1) The layout pass emits CRLF for wrapped lines; matching works on LF
    s = _RE_CRLF.sub("\n", s)

    # 2) Normalize exotic spaces and remove soft hyphens
    s = _RE_SOFT_HYPHEN.sub("", s)
    s = _RE_SPECIAL_SPACES.sub(" ", s)

    return s
