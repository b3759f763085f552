import os
import re
import chardet

LINE_ENDINGS_ENV = "DECLMETA_LINE_ENDINGS"

_NEWLINE_RE = re.compile(r"\r?\n")


def normalize_line_endings(text: str, mode: str = None) -> str:
    """
    Rewrite every line break to one convention.

    ``crlf`` is the default so recorded bodies and values keep windows
    line breaks, ``lf`` gives unix endings. ``keep`` leaves the text untouched.
    """
    if not text:
        return text
    mode = (mode or os.environ.get(LINE_ENDINGS_ENV, "crlf")).lower()
    if mode == "keep":
        return text
    if mode == "lf":
        return _NEWLINE_RE.sub("\n", text)
    return _NEWLINE_RE.sub("\r\n", text)


def decode_source(raw: bytes) -> str:
    if not raw:
        return ""
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        guess = chardet.detect(raw)
        encoding = guess.get("encoding") or "utf-8"
        try:
            return raw.decode(encoding, errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")


def load_source(file_path: str) -> str:
    # OSError propagates to the caller of the per-file step
    with open(file_path, "rb") as f:
        raw = f.read()
    return normalize_line_endings(decode_source(raw))
