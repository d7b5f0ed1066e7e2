from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from grade_service.core.config import Settings, get_settings, letter_band_problem
from grade_service.core.errors import invalid_config

TWO_PLACES = Decimal("0.01")
HUNDRED = Decimal("100")


def round_score(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class LetterBand:
    letter: str
    minimum: Decimal


@dataclass(frozen=True)
class GradingPolicy:
    """Letter-grade bands and the pass threshold set by the institution."""

    bands: tuple[LetterBand, ...]
    pass_threshold: Decimal

    @classmethod
    def from_mapping(cls, bands: dict[str, Decimal], pass_threshold: Decimal) -> "GradingPolicy":
        problem = letter_band_problem(bands)
        if problem:
            raise invalid_config(problem)

        ordered = sorted(
            (LetterBand(letter=letter, minimum=Decimal(str(minimum))) for letter, minimum in bands.items()),
            key=lambda band: band.minimum,
            reverse=True,
        )
        return cls(bands=tuple(ordered), pass_threshold=Decimal(str(pass_threshold)))

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "GradingPolicy":
        settings = settings or get_settings()
        return cls.from_mapping(settings.letter_grade_bands, settings.pass_threshold)

    @property
    def letters(self) -> list[str]:
        return [band.letter for band in self.bands]

    def letter_for(self, score: Decimal) -> str:
        for band in self.bands:
            if score >= band.minimum:
                return band.letter
        return self.bands[-1].letter

    def has_passed(self, score: Decimal) -> bool:
        return score >= self.pass_threshold
