"""
Prompt templates for the two workbench features.

Both builders are pure string concatenation: user text is embedded verbatim
inside fenced blocks and never escaped. The model is expected to cope with
malformed JSON or SQL and reason about it in its answer.
"""

COMPLIANCE_HEADER = (
    "You are a Data Governance Expert.\n"
    "Your task is to analyze a user's query against a given data schema, determine its compliance, "
    "and if it is compliant, show a sample of the query's result with all PII redacted."
)

CLASSIFICATION_HEADER = (
    "You are a Data Classification Specialist.\n"
    "Your task is to analyze a data schema and a corresponding data sample to classify each field's "
    "sensitivity level. The data may be in JSON or CSV format."
)

NON_COMPLIANT_NOTICE = "Redacted results are not generated for non-compliant queries."
REDACTED = "[REDACTED]"


def _fenced(body: str, lang: str = "") -> str:
    return "```" + lang + "\n" + body + "\n```"


def build_compliance_prompt(schema: str, query: str) -> str:
    """Build the compliance-check prompt for a schema / SQL query pair.

    The answer is requested as markdown with two sections:
    - Compliance Analysis: status, reasoning, suggested compliant query
    - Sample Redacted Results: a 3-4 row table with PII columns masked
    """
    instruct = (
        "Please provide the following analysis in well-structured Markdown format:\n\n"
        "---\n\n"
        "### Compliance Analysis\n\n"
        "**Compliance Status:** (State \"Compliant\" or \"Non-Compliant\")\n\n"
        "**Reasoning:** (If Non-Compliant, explain the violation. If Compliant, briefly state why.)\n\n"
        "**Suggested Compliant Query:** (If Non-Compliant, provide a safe alternative. "
        "If Compliant, state that no changes are needed.)\n\n"
        "---\n\n"
        "### Sample Redacted Results\n\n"
        "-   If the query is **Compliant**, generate a small, realistic, sample markdown table "
        "representing the query's output (3-4 rows).\n"
        "-   In this table, for any column identified as PII from the schema, replace its data "
        f"with the placeholder `{REDACTED}`.\n"
        "-   If the query is **Non-Compliant**, simply state: "
        f"\"{NON_COMPLIANT_NOTICE}\""
    )

    return (
        COMPLIANCE_HEADER
        + "\n\n**Data Schema:**\n"
        + _fenced(schema, "json")
        + "\n\n**User Query:**\n"
        + _fenced(query, "sql")
        + "\n\n"
        + instruct
        + "\n"
    )


def build_classification_prompt(schema: str, sample: str) -> str:
    """Build the field-sensitivity classification prompt for a schema and data sample."""
    instruct = (
        "Please perform the following:\n"
        "1.  Carefully examine each field provided in the schema.\n"
        "2.  Use the data sample to understand the context and typical values for each field.\n"
        "3.  Classify each field into one of the following categories:\n"
        "    -   **PII (Personally Identifiable Information):** Data that can be used to identify "
        "a specific individual (e.g., name, email, address, phone number, IP address).\n"
        "    -   **Sensitive:** Data that is confidential but not directly identifying "
        "(e.g., financial data, internal metrics, transaction amounts).\n"
        "    -   **Public:** Non-sensitive data that can be shared openly "
        "(e.g., product IDs, transaction dates, public identifiers).\n\n"
        "Present your findings in a clear Markdown table with the following columns:\n"
        "-   **Field Name**\n"
        "-   **Classification**\n"
        "-   **Reasoning** (Provide a brief justification for your classification)."
    )

    return (
        CLASSIFICATION_HEADER
        + "\n\n**Data Schema:**\n"
        + _fenced(schema)
        + "\n\n**Data Sample:**\n"
        + _fenced(sample)
        + "\n\n"
        + instruct
        + "\n"
    )
