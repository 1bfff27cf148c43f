"""Long-term support window check for the "target: lts" label.

The active LTS version of a major is published as the npm dist-tag
``v<major>-lts``. A major is supported for a fixed number of months after
its ``<major>.0.0`` release: first in active support, then in LTS.
"""

from __future__ import annotations

import calendar
from collections.abc import Callable
from datetime import date, datetime

import httpx
from packaging.version import InvalidVersion, Version

from prmerge.core.config import LtsConfig
from prmerge.core.log import logger
from prmerge.core.prompt import Confirm, confirm
from prmerge.merge.release_trains import VERSION_BRANCH_PATTERN
from prmerge.merge.target_label import InvalidTargetBranchError


def add_months(day: date, months: int) -> date:
    """Add calendar months, clamping to the end of shorter months."""
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def lts_end_date(release_date: date, config: LtsConfig) -> date:
    return add_months(
        release_date, config.active_support_months + config.lts_months
    )


class NpmLtsBranchCheck:
    """Checks a version branch against the npm LTS dist-tags.

    Called with the PR's base branch; returns when the branch may receive
    the change and raises InvalidTargetBranchError otherwise. When the
    LTS window has ended the user is asked whether to proceed anyway.
    """

    def __init__(
        self,
        config: LtsConfig,
        confirm: Confirm = confirm,
        transport: httpx.AsyncBaseTransport | None = None,
        today: Callable[[], date] = date.today,
    ):
        self.config = config
        self.confirm = confirm
        self.transport = transport
        self.today = today

    async def fetch_package_info(self) -> dict:
        """Fetch the registry document of the configured package."""
        if not self.config.package_name:
            raise InvalidTargetBranchError(
                "Unable to verify the long-term support window: no npm "
                "package is configured."
            )
        path = self.config.package_name.replace("/", "%2f")
        async with httpx.AsyncClient(
            base_url=self.config.registry_url.rstrip("/"),
            transport=self.transport,
            timeout=30.0,
        ) as client:
            response = await client.get(f"/{path}")
            response.raise_for_status()
            return response.json()

    async def __call__(self, branch_name: str) -> None:
        match = VERSION_BRANCH_PATTERN.match(branch_name)
        if match is None:
            raise InvalidTargetBranchError(
                f"Branch \"{branch_name}\" is not a version branch."
            )
        major = int(match.group(1))

        info = await self.fetch_package_info()
        dist_tags = info.get("dist-tags", {})
        try:
            lts_version = Version(dist_tags[f"v{major}-lts"])
        except (KeyError, InvalidVersion):
            raise InvalidTargetBranchError(
                f"No LTS version tagged for v{major} in NPM."
            ) from None

        expected_branch = f"{lts_version.major}.{lts_version.minor}.x"
        if branch_name != expected_branch:
            raise InvalidTargetBranchError(
                f"Not using last-minor branch for v{major} LTS version. "
                f"PR should be updated to target: {expected_branch}"
            )

        released = info.get("time", {}).get(f"{major}.0.0")
        if released is None:
            raise InvalidTargetBranchError(
                f"No release date found for v{major}.0.0 in NPM."
            )
        release_date = datetime.fromisoformat(
            released.replace("Z", "+00:00")
        ).date()
        end_date = lts_end_date(release_date, self.config)
        if self.today() <= end_date:
            return

        end_text = f"{end_date.month}/{end_date.day}/{end_date.year}"
        logger.warn(f"Long-term support ended for v{major} on {end_text}.")
        if self.confirm("Do you want to forcibly proceed with merging?"):
            return
        raise InvalidTargetBranchError(
            f"Long-term supported ended for v{major} on {end_text}. Pull "
            f"request cannot be merged into the {branch_name} branch."
        )


__all__ = ["NpmLtsBranchCheck", "add_months", "lts_end_date"]
