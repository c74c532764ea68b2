# Overview: Display theme for each scan status (colour, label, message) shown by the result screen.

from __future__ import annotations

from dataclasses import dataclass, asdict

from .models.scans import SCAN_ORIGINAL, SCAN_FAKE, SCAN_ALREADY_USED, SCAN_INACTIVE


@dataclass(frozen=True)
class ResultTheme:
    color: str
    label: str
    title: str
    message: str

    def to_dict(self) -> dict:
        return asdict(self)


AUTHENTIC = ResultTheme(
    color="#0B610A",
    label="Authentic",
    title="Authentic Product",
    message="This product is genuine.",
)

COUNTERFEIT = ResultTheme(
    color="#E30211",
    label="Counterfeit",
    title="Counterfeit Alert",
    message="This QR code is not recognised. The product may be counterfeit.",
)

REPEAT_SCAN = ResultTheme(
    color="#DFB408",
    label="Repeat Scan",
    title="Already Scanned",
    message="This code has been scanned before. Check the original scan details.",
)

THEMES = {
    SCAN_ORIGINAL: AUTHENTIC,
    SCAN_FAKE: COUNTERFEIT,
    SCAN_INACTIVE: COUNTERFEIT,
    SCAN_ALREADY_USED: REPEAT_SCAN,
}


def theme_for(status) -> ResultTheme:
    """Theme for a scan status; anything unrecognised is treated as counterfeit."""
    return THEMES.get(status, COUNTERFEIT)
