"""Contains utilities that are not specific to join ordering, e.g. subset enumeration and logging."""

import lazy_loader

__getattr__, __dir__, __all__ = lazy_loader.attach_stub(
    __name__,
    __file__,
)
