"""Exceptions raised while resolving and decoding a Mifare Classic dump."""


class DumpError(ValueError):
    """Base class for problems with the dump contents."""


class InvalidDumpLength(DumpError):
    """The dump size matches none of the known card sizes."""

    def __init__(self, length: int, allowed: tuple[int, ...]):
        self.length = length
        self.allowed = allowed
        if len(allowed) == 1:
            sizes = f"at least {allowed[0]}"
        else:
            sizes = ", ".join(str(a) for a in allowed[:-1]) + f" or {allowed[-1]}"
        super().__init__(
            f"Wrong file size: {length} bytes. Only {sizes} bytes is allowed."
        )


class ChecksumMismatch(DumpError):
    """The access bits of one slot disagree with their inverted copy."""

    def __init__(self, slot: int, bits: int, inverted: int):
        self.slot = slot
        self.bits = bits
        self.inverted = inverted
        super().__init__(
            f"Access bits for slot {slot} are inconsistent: "
            f"{bits:03b} vs inverted {inverted:03b}"
        )


class DumpFormatError(DumpError):
    """A text dump could not be turned into bytes."""
