class MathTools:
    """Provides the arithmetic behind estimated maxes and chart axes."""

    # Brzycki: weight / ((37 / 36) - ((1 / 36) * reps))
    BRZYCKI_NUMERATOR: float = 1.0278
    BRZYCKI_REP_COEFF: float = 0.0278
    ROUNDING_INCREMENT: int = 5
    AXIS_DIVISOR: int = 15

    @classmethod
    def brzycki_denominator(cls, reps: int) -> float:
        return cls.BRZYCKI_NUMERATOR - cls.BRZYCKI_REP_COEFF * reps

    @classmethod
    def brzycki_1rm(cls, weight: float, reps: int) -> float:
        """Return the estimated one-rep max using the Brzycki formula."""
        if reps < 1:
            raise ValueError("reps must be positive")
        denominator = cls.brzycki_denominator(reps)
        if denominator <= 0:
            raise ValueError(f"Brzycki formula is undefined for {reps} reps")
        return weight / denominator

    @staticmethod
    def round_down_to_multiple(value: float, increment: int) -> int:
        """Truncate ``value`` and round it down to a multiple of ``increment``."""
        if increment <= 0:
            raise ValueError("increment must be positive")
        return increment * (int(value) // increment)

    @classmethod
    def divisible_floor(cls, top: int, bottom: int, divisor: int | None = None) -> int:
        """Return the largest value below ``bottom`` whose distance to ``top`` divides by ``divisor``.

        ``bottom`` always moves down at least once, so the returned span is a
        positive multiple of ``divisor`` even when ``top == bottom``.
        """
        divisor = divisor or cls.AXIS_DIVISOR
        if top < bottom:
            raise ValueError("top must not be below bottom")
        bottom -= 1
        while (top - bottom) % divisor != 0:
            bottom -= 1
        return bottom
