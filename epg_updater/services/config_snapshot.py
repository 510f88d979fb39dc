"""
Reconciliation parameters

A ConfigSnapshot is read once per update pass from the settings store and
handed to every component of that pass. It never changes mid-pass.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol


logger = logging.getLogger(__name__)

DEFAULT_TITLE_TEMPLATE = "%TITLE%"
DEFAULT_DESCRIPTION_TEMPLATE = "%DESCRIPTION%"
DEFAULT_REGRAB_MINUTES = 240


class SettingsReader(Protocol):
    async def get_setting(self, name: str, default: str | None = None) -> str | None: ...


def _is_yes(value: str | None) -> bool:
    return value == "yes"


def _parse_minutes(value: str | None) -> int:
    try:
        return int(value) if value is not None else DEFAULT_REGRAB_MINUTES
    except ValueError:
        logger.debug("Ignoring non-numeric timeoutEPGRefresh value %r", value)
        return DEFAULT_REGRAB_MINUTES


@dataclass(frozen=True, slots=True)
class ConfigSnapshot:
    title_template: str = DEFAULT_TITLE_TEMPLATE
    description_template: str = DEFAULT_DESCRIPTION_TEMPLATE
    epg_languages: str = ""
    store_only_selected: bool = False
    store_only_selected_radio: bool = False
    regrab_after_minutes: int = DEFAULT_REGRAB_MINUTES
    always_fill_holes: bool = False
    always_replace: bool = False
    check_for_last_update: bool = True

    def __post_init__(self):
        # Always-replace refreshes on every grab, so the regrab interval is moot
        if self.always_replace and self.check_for_last_update:
            object.__setattr__(self, "check_for_last_update", False)

    @classmethod
    async def load(
        cls,
        reader: SettingsReader,
        *,
        check_for_last_update: bool = True,
    ) -> ConfigSnapshot:
        """Read every reconciliation setting from the settings store."""
        snapshot = cls(
            title_template=await reader.get_setting("epgTitleTemplate", DEFAULT_TITLE_TEMPLATE) or "",
            description_template=await reader.get_setting(
                "epgDescriptionTemplate", DEFAULT_DESCRIPTION_TEMPLATE
            ) or "",
            epg_languages=await reader.get_setting("epgLanguages", "") or "",
            store_only_selected=_is_yes(await reader.get_setting("epgStoreOnlySelected", "no")),
            store_only_selected_radio=_is_yes(
                await reader.get_setting("epgRadioStoreOnlySelected", "no")
            ),
            regrab_after_minutes=_parse_minutes(
                await reader.get_setting("timeoutEPGRefresh", str(DEFAULT_REGRAB_MINUTES))
            ),
            always_fill_holes=_is_yes(await reader.get_setting("generalEPGAlwaysFillHoles", "no")),
            always_replace=_is_yes(await reader.get_setting("generalEPGAlwaysReplace", "no")),
            check_for_last_update=check_for_last_update,
        )
        logger.debug("Loaded EPG configuration snapshot: %s", snapshot)
        return snapshot
