"""Prompt generator, the third stage: a self-contained investigation prompt per issue."""

from __future__ import annotations

import json
import logging

from langchain_core.messages import HumanMessage

from uxpilot.investigation.models import InvestigationData, InvestigationPrompt, VerifiedIssue
from uxpilot.llm.client import GenerationClient
from uxpilot.parsing import extract_json, parse_items

logger = logging.getLogger("uxpilot.prompting")

LABEL = "Prompt Generator"

_SYSTEM_PROMPT = """\
You write investigation prompts a developer can paste into any AI assistant \
(Claude, ChatGPT, Lovable, ...) to investigate one UX issue.

You receive verified issues (analytics facts) and investigation data (hypotheses). \
For each issue write a prompt with these sections:

- Opening line: investigate the <metric> on <page name> (<url>).
- CONTEXT: count, total and affected sessions with percentage, priority.
- WHAT WE KNOW: every known fact.
- WHAT WE DON'T KNOW: every unknown factor.
- POSSIBLE CAUSES: lettered, ordered HIGH → MEDIUM → LOW, each with its description.
- INVESTIGATION TASKS: locate the rendering component (likely files), check each \
visual element for hover effects, click handlers and whether it should be clickable, \
2-3 checks specific to the causes, and edge cases (clicks during load, selected \
state, mobile vs desktop).
- FINAL DECISION checklist with all four options: BUG REAL (give the fix with file \
and line), FALSE POSITIVE (explain why no fix), UX IMPROVEMENT (optional improvement), \
NEEDS MORE DATA (what is missing; suggest session recordings).

Each prompt must be self-contained and must NOT contain a fix. Aim for 30-50 lines.

Output ONE JSON code block:

```json
[
  {
    "issueId": "UX-001",
    "promptText": "<the full prompt>",
    "quickContext": {
      "filesToCheck": ["src/pages/Documents.tsx"],
      "searchTerms": ["hover:", "onClick"]
    }
  }
]
```
"""


async def generate_prompts(
    client: GenerationClient,
    issues: list[VerifiedIssue],
    investigations: list[InvestigationData],
) -> list[InvestigationPrompt]:
    """Generate one investigation prompt per issue. Unparseable output yields []."""
    issues_json = json.dumps([i.model_dump(mode="json", by_alias=True) for i in issues], indent=2)
    investigations_json = json.dumps(
        [i.model_dump(mode="json", by_alias=True) for i in investigations], indent=2
    )
    user_content = (
        f"## Verified Issues\n\n```json\n{issues_json}\n```\n\n"
        f"## Investigation Data\n\n```json\n{investigations_json}\n```"
    )

    raw = await client.complete(_SYSTEM_PROMPT, [HumanMessage(content=user_content)], LABEL)

    prompts = parse_items(extract_json(raw, []), InvestigationPrompt, LABEL)
    logger.info("[%s] Generated %d investigation prompts", LABEL, len(prompts))
    return prompts
