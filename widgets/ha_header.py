from __future__ import annotations
import pyfiglet
from textual.widgets import Static

_ASCII = pyfiglet.figlet_format("HA Cluster Setup", font="small")


class HAHeader(Static):
    """ASCII-art banner shown at the top of every step."""

    DEFAULT_CSS = """
    HAHeader {
        color: #30ba78;
        text-style: bold;
        width: 100%;
        padding: 0 2;
    }
    """

    def __init__(self) -> None:
        super().__init__(_ASCII, markup=False)
