"""MSA/MD consistency special edit (Q029).

A property reported without an MSA/MD (``NA``) should not lie in a county
that belongs to one. Needs geography reference data, read locally or from
the geography service depending on the run options.
"""

from __future__ import annotations

from typing import List

from hmda_edits.core.enums import Scope, Stage
from ..config import NOT_APPLICABLE
from ..context import RunContext
from ..geography import build_geography_lookup
from ..models import Violation


class GeographyCheck:
    """Flag properties in an MSA/MD that were reported as outside one."""

    stage = Stage.SPECIAL
    field_layouts = {"Q029": ("metroArea", "fipsState", "fipsCounty")}

    async def validate(self, context: RunContext) -> List[Violation]:
        candidates = [
            r
            for r in context.document.details
            if r.get("metroArea") == NOT_APPLICABLE
            and r.get("fipsState") not in ("", NOT_APPLICABLE, None)
            and r.get("fipsCounty") not in ("", NOT_APPLICABLE, None)
        ]
        if not candidates:
            return []

        owned = context.geography is None
        lookup = context.geography or build_geography_lookup(context.options)
        results = []
        try:
            for record in candidates:
                msa = await lookup.msa_for(record["fipsState"], record["fipsCounty"])
                if msa is None:
                    continue
                results.append(
                    Violation(
                        edit_id="Q029",
                        scope=Scope.DETAIL,
                        line_number=record.line_number,
                        record_key=record.loan_number,
                        properties={
                            "metroArea": record["metroArea"],
                            "fipsState": record["fipsState"],
                            "fipsCounty": record["fipsCounty"],
                        },
                    )
                )
        finally:
            if owned:
                await lookup.aclose()
        return results

    def applies_to_year(self, year: int) -> bool:
        """Check applies to all years."""
        return True
