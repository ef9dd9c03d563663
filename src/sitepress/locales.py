"""Locale model."""

from dataclasses import dataclass
from typing import Iterable, Iterator, Tuple

from sitepress.exceptions import SettingsError

DEFAULT_LOCALES = ("ja", "en", "zh")
DEFAULT_LOCALE = "zh"


@dataclass(frozen=True)
class Locale:
    """A supported locale.

    The default locale owns the unsuffixed file names and the unprefixed
    routes; every other locale gets ``-<code>`` and ``/<code>``.
    """

    code: str
    is_default: bool = False

    @property
    def suffix(self) -> str:
        return "" if self.is_default else f"-{self.code}"

    @property
    def prefix(self) -> str:
        return "" if self.is_default else f"/{self.code}"


class LocaleSet:
    """Ordered, validated collection of locales with exactly one default."""

    def __init__(self, codes: Iterable[str], default: str) -> None:
        codes = tuple(codes)
        if not codes:
            raise SettingsError("At least one locale must be configured")

        seen = set()
        for code in codes:
            if not code or "/" in code:
                raise SettingsError(f"Invalid locale code: {code!r}")
            if code in seen:
                raise SettingsError(f"Duplicate locale code: {code!r}")
            seen.add(code)

        if default not in seen:
            raise SettingsError(f"Default locale {default!r} is not one of {list(codes)}")

        self.locales: Tuple[Locale, ...] = tuple(
            Locale(code, is_default=(code == default)) for code in codes
        )

    @property
    def default(self) -> Locale:
        return next(locale for locale in self.locales if locale.is_default)

    def get(self, code: str) -> Locale:
        for locale in self.locales:
            if locale.code == code:
                return locale
        raise KeyError(code)

    def __iter__(self) -> Iterator[Locale]:
        return iter(self.locales)

    def __len__(self) -> int:
        return len(self.locales)

    def __repr__(self) -> str:
        return f"LocaleSet({[locale.code for locale in self.locales]!r}, default={self.default.code!r})"
