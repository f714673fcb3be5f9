"""Code investigator, the second stage: hypotheses about each verified issue from source reading."""

from __future__ import annotations

import json
import logging

from langchain_core.messages import HumanMessage

from uxpilot.investigation.models import InvestigationData, VerifiedIssue
from uxpilot.llm.client import GenerationClient
from uxpilot.parsing import extract_json, parse_items

logger = logging.getLogger("uxpilot.hypothesis")

LABEL = "Code Investigator"

_SYSTEM_PROMPT = """\
You are a code investigator: an expert at reading frontend codebases to generate \
hypotheses about UX issues, NOT conclusions. Do NOT propose fixes.

You receive a JSON array of verified UX issues and the target repository context \
(package manifest, file listing, route/page sources).

For each issue:
1. Detect the framework from the manifest and map the issue URL to the component \
that renders it.
2. Look for elements that look clickable (hover styles, cursor-pointer) without a \
handler, handlers that are missing or conditional, loading states, and layout that \
invites clicks on padding.
3. List possible causes with an honest probability:
   - HIGH: the code clearly shows the problem pattern
   - MEDIUM: suspicious but context-dependent
   - LOW: plausible but speculative (timing, browser quirks, very few sessions)
4. Always list what the analytics API cannot tell (click coordinates, the exact \
element, load state, device for that click, user intent).

Output ONE JSON code block:

```json
[
  {
    "issueId": "UX-001",
    "knownFacts": ["6 dead clicks detected on /documents"],
    "unknownFactors": ["Exact element that was clicked"],
    "possibleCauses": [
      {
        "id": "CAUSE-001",
        "probability": "MEDIUM",
        "title": "Cards have hover effect but no onClick",
        "description": "...",
        "filesLikelyInvolved": ["src/components/DocumentCard.tsx"]
      }
    ],
    "relevantFiles": [
      {"path": "src/pages/Documents.tsx", "reason": "Page for /documents", "searchTerms": ["onClick"]}
    ]
  }
]
```

Use the issue ids exactly as given. Only reference files that exist in the listing.
"""


async def generate_investigations(
    client: GenerationClient,
    issues: list[VerifiedIssue],
    repo_context: str,
    route_files: str,
    route_files_budget: int,
) -> list[InvestigationData]:
    """Generate hypotheses for every verified issue. Unparseable output yields []."""
    issues_json = json.dumps([i.model_dump(mode="json", by_alias=True) for i in issues], indent=2)
    user_content = (
        f"## Verified UX Issues\n\n```json\n{issues_json}\n```\n\n"
        f"## Repository Structure\n\n{repo_context}\n\n"
        f"## Route/Page Source Files\n\n{route_files[:route_files_budget]}"
    )

    raw = await client.complete(_SYSTEM_PROMPT, [HumanMessage(content=user_content)], LABEL)

    parsed = extract_json(raw, [])
    investigations = parse_items(parsed, InvestigationData, LABEL)
    if not investigations and issues:
        logger.warning("[%s] Response contained no usable investigation data", LABEL)

    logger.info("[%s] Generated %d investigation entries", LABEL, len(investigations))
    return investigations
