"""Prompt text sent to the summarization service."""

from casebook.models.ai_report import THREAT_LEVELS
from casebook.models.case import Case
from casebook.services.catalog import get_step
from casebook.services.notebook import sort_timeline
from casebook.services.reporting import ioc_lines, task_lines


def flatten_analyst_data(case: Case) -> dict[str, str]:
    data = case.notebook()
    return {
        "notes": data.notes or "N/A",
        "tasks": "\n".join(task_lines(data)) or "N/A",
        "timeline": "\n".join(f"[{e.date} {e.time}] {e.description}" for e in sort_timeline(data.timeline)) or "N/A",
        "iocs": "\n".join(ioc_lines(data)) or "N/A",
    }


def _step_title(step_id: str) -> str:
    step = get_step(step_id)
    return step.title if step else step_id


def build_analysis_prompt(case: Case) -> str:
    flat = flatten_analyst_data(case)
    levels = " | ".join(THREAT_LEVELS)
    findings = "\n".join(
        f"---\nSTEP: {_step_title(step_id)}\nFINDING: {finding}\n---"
        for step_id, finding in (case.findings or {}).items()
    )

    return f"""Act as a Senior Digital Forensics and Incident Response (DFIR) Expert.
Review the following investigation notes for Case ID: {case.case_id}, Analyst: {case.analyst_name}.

ANALYST NOTES:
{flat['notes']}

TASKS:
{flat['tasks']}

MANUAL TIMELINE EVENTS:
{flat['timeline']}

INDICATORS OF COMPROMISE (IOCs):
{flat['iocs']}

INVESTIGATION DATA:
{findings or 'No findings recorded yet.'}

Based strictly on the provided findings, generate a JSON response with the following structure:
{{
  "summary": "A professional executive summary of the incident based on findings.",
  "threatLevel": "{levels}",
  "keyIndicators": ["List of potential IOCs found"],
  "gapAnalysis": ["List of forensic steps that appear missing or incomplete based on the standard process"],
  "recommendations": ["Specific next steps to take"]
}}

Do not output Markdown formatting for the JSON. Just the raw JSON string.
"""


def build_final_report_prompt(case: Case) -> str:
    flat = flatten_analyst_data(case)
    findings = "\n\n".join(
        f"Step: {_step_title(step_id)}\nRaw Findings: {finding}"
        for step_id, finding in (case.findings or {}).items()
    )

    return f"""Act as a Forensic Report Editor. You are generating the final report for Case {case.case_id}.

INPUT DATA:
1. Analyst Notes: {flat['notes']}
2. Tasks Status:
{flat['tasks']}
3. IOCs (Indicators of Compromise):
{flat['iocs']}
4. Manual Timeline Events:
{flat['timeline']}
5. Technical Findings:
{findings or 'None recorded.'}

INSTRUCTIONS:
1. "Clean" the analysis: Rewrite the findings to be professional, concise, and grammatically correct forensic statements.
2. Auto-generate a Chronological Timeline: Extract ALL timestamps mentioned in the Technical Findings or Analyst Notes AND include the Manual Timeline Events provided above. Merge them into a single chronological sequence.
3. Output a standard Markdown report structure.

FORMAT:
# Forensic Investigation Report: {case.case_id}
## Executive Summary
(Synthesize findings and notes)

## Investigation Details
### Analyst Notes
(Cleaned version)
### Indicators of Compromise
(Cleaned list)
### Task Completion Status
(Summary of completed vs pending tasks)

## Comprehensive Timeline
| Timestamp | Event | Source |
| --- | --- | --- |
(Extracted events merged with manual events)

## Technical Analysis
(Iterate through findings, cleaned and formatted)

## Conclusion & Recommendations
"""
