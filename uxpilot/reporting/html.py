"""Self-contained HTML rendering of an investigation report."""

from __future__ import annotations

from jinja2 import BaseLoader, Environment

from uxpilot.investigation.models import InvestigationReport, Priority, Probability

ENV = Environment(
    loader=BaseLoader(),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)

PRIORITY_COLORS = {
    Priority.P0: "#ef4444",
    Priority.P1: "#f97316",
    Priority.P2: "#eab308",
    Priority.P3: "#22c55e",
}

PROBABILITY_COLORS = {
    Probability.HIGH: "#ef4444",
    Probability.MEDIUM: "#eab308",
    Probability.LOW: "#94a3b8",
}

_STYLES = """
body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', sans-serif; margin: 0;
       background: #0f172a; color: #e2e8f0; }
header, section, .issue { max-width: 1100px; margin: 0 auto; padding: 24px; }
h1 { margin: 0 0 8px; font-size: 28px; }
.meta { color: #94a3b8; font-size: 14px; }
.stats { display: grid; grid-template-columns: repeat(auto-fit, minmax(160px, 1fr)); gap: 12px; }
.stat { background: #1e293b; border-radius: 8px; padding: 16px; }
.stat .value { font-size: 24px; font-weight: 700; }
.issue { background: #1e293b; border-radius: 8px; margin-bottom: 16px; }
.badge { display: inline-block; padding: 2px 8px; border-radius: 4px; color: #0f172a;
         font-weight: 700; font-size: 12px; }
.defaulted { color: #f97316; font-size: 12px; }
pre { background: #0f172a; padding: 12px; border-radius: 6px; white-space: pre-wrap; }
button { background: #3b82f6; color: white; border: 0; border-radius: 4px; padding: 6px 12px;
         cursor: pointer; }
table { border-collapse: collapse; width: 100%; }
td, th { text-align: left; padding: 6px 8px; border-bottom: 1px solid #334155; }
"""

_SCRIPT = """
function copyPrompt(id) {
  const text = document.getElementById(id).innerText;
  navigator.clipboard.writeText(text);
}
"""

REPORT_TEMPLATE = ENV.from_string(
    """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>UX Investigation Report - {{ meta.generated_at.date().isoformat() }}</title>
  <style>{{ styles | safe }}</style>
</head>
<body>
<header>
  <h1>UX Investigation Report</h1>
  <div class="meta">
    {{ meta.target_repo }} · Clarity project {{ meta.clarity_project_id }} · {{ meta.data_range }}
    · generated {{ meta.generated_at.strftime("%Y-%m-%d %H:%M UTC") }}
  </div>
</header>
<section class="stats">
  <div class="stat"><div>Total Sessions</div><div class="value">{{ summary.total_sessions }}</div></div>
  <div class="stat"><div>Dead Clicks</div><div class="value">{{ summary.total_dead_clicks }}</div></div>
  <div class="stat"><div>Rage Clicks</div><div class="value">{{ summary.total_rage_clicks }}</div></div>
  <div class="stat"><div>Pages Affected</div><div class="value">{{ summary.total_pages }}</div></div>
  {% for tier, count in summary.issues_by_priority.items() %}
  <div class="stat"><div>{{ tier.value }}</div><div class="value">{{ count }}</div></div>
  {% endfor %}
</section>
<section>
  <p>Verified facts come from Clarity analytics. Possible causes are hypotheses from
  reading the source code. Each prompt is meant to be pasted into an AI assistant to
  investigate further; nothing here is a final verdict.</p>
</section>
{% for entry in issues %}
{% set issue = entry.verified %}
<div class="issue">
  <h2>
    <span class="badge" style="background: {{ priority_colors[issue.priority] }}">{{ issue.priority.value }}</span>
    {{ issue.id }} · {{ issue.page_name_inferred or issue.url }}
  </h2>
  {% if entry.defaulted %}<div class="defaulted">Partial data: some stages returned nothing for this issue.</div>{% endif %}
  <table>
    <tr><th>URL</th><td>{{ issue.url }}</td></tr>
    <tr><th>Metric</th><td>{{ issue.metric }} ({{ issue.type.value }})</td></tr>
    <tr><th>Count</th><td>{{ issue.count }}</td></tr>
    <tr><th>Sessions</th><td>{{ issue.sessions_affected }} of {{ issue.sessions_total }} ({{ "%.1f" | format(issue.percent_affected) }}%)</td></tr>
  </table>
  <h3>What we know</h3>
  <ul>{% for fact in entry.investigation.known_facts %}<li>{{ fact }}</li>{% endfor %}</ul>
  <h3>What we don't know</h3>
  <ul>{% for factor in entry.investigation.unknown_factors %}<li>{{ factor }}</li>{% endfor %}</ul>
  {% if entry.investigation.possible_causes %}
  <h3>Possible causes</h3>
  <ul>
  {% for cause in entry.investigation.possible_causes %}
    <li>
      <span class="badge" style="background: {{ probability_colors[cause.probability] }}">{{ cause.probability.value }}</span>
      <strong>{{ cause.title }}</strong>: {{ cause.description }}
      {% if cause.files_likely_involved %}<br><code>{{ cause.files_likely_involved | join(", ") }}</code>{% endif %}
    </li>
  {% endfor %}
  </ul>
  {% endif %}
  {% if entry.investigation.relevant_files %}
  <h3>Relevant files</h3>
  <ul>
  {% for file in entry.investigation.relevant_files %}
    <li><code>{{ file.path }}</code>: {{ file.reason }}{% if file.search_terms %} (search: {{ file.search_terms | join(", ") }}){% endif %}</li>
  {% endfor %}
  </ul>
  {% endif %}
  <h3>Investigation prompt <button onclick="copyPrompt('prompt-{{ loop.index }}')">Copy</button></h3>
  <pre id="prompt-{{ loop.index }}">{{ entry.prompt.prompt_text }}</pre>
</div>
{% else %}
<section><p>No verified issues were extracted for this run.</p></section>
{% endfor %}
<section>
  <h2>Run cost</h2>
  <table>
    <tr><th>Clarity API calls</th><td>{{ meta.clarity_api_calls }}</td></tr>
    <tr><th>LLM API calls</th><td>{{ meta.llm_api_calls }}</td></tr>
    <tr><th>Tokens</th><td>{{ meta.input_tokens }} in / {{ meta.output_tokens }} out</td></tr>
    <tr><th>Estimated cost</th><td>${{ "%.4f" | format(meta.estimated_cost) }}</td></tr>
    <tr><th>Duration</th><td>{{ "%.1f" | format(meta.duration_ms / 1000) }}s</td></tr>
  </table>
</section>
<footer class="meta" style="text-align: center; padding: 24px;">
  Pipeline {{ meta.pipeline_version }} · report {{ report_id }}
</footer>
<script>{{ script | safe }}</script>
</body>
</html>
"""
)


def render_report_html(report: InvestigationReport) -> str:
    return REPORT_TEMPLATE.render(
        meta=report.metadata,
        summary=report.summary,
        issues=report.issues,
        report_id=report.report_id,
        priority_colors=PRIORITY_COLORS,
        probability_colors=PROBABILITY_COLORS,
        styles=_STYLES,
        script=_SCRIPT,
    )
