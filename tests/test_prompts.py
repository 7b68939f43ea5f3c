from governance_app.prompts import (
    CLASSIFICATION_HEADER,
    COMPLIANCE_HEADER,
    NON_COMPLIANT_NOTICE,
    build_classification_prompt,
    build_compliance_prompt,
)

SCHEMA = '{"name": "users", "fields": [{"name": "email", "type": "string", "pii": true}]}'
QUERY = "SELECT email FROM users WHERE id = 7;"


def test_compliance_prompt_embeds_inputs_verbatim():
    prompt = build_compliance_prompt(SCHEMA, QUERY)
    assert prompt.startswith(COMPLIANCE_HEADER)
    assert SCHEMA in prompt
    assert QUERY in prompt
    assert "```json\n" + SCHEMA + "\n```" in prompt
    assert "```sql\n" + QUERY + "\n```" in prompt


def test_compliance_prompt_asks_for_redacted_sample():
    prompt = build_compliance_prompt(SCHEMA, QUERY)
    assert "### Compliance Analysis" in prompt
    assert "### Sample Redacted Results" in prompt
    assert "[REDACTED]" in prompt
    assert NON_COMPLIANT_NOTICE in prompt


def test_inputs_are_not_escaped():
    schema = "not json at all ``` <b>"
    query = "DROP TABLE users; -- ```"
    prompt = build_compliance_prompt(schema, query)
    assert schema in prompt
    assert query in prompt


def test_classification_prompt():
    sample = "email,amount\nalice@example.com,12.50"
    prompt = build_classification_prompt(SCHEMA, sample)
    assert prompt.startswith(CLASSIFICATION_HEADER)
    assert "```\n" + SCHEMA + "\n```" in prompt
    assert "```\n" + sample + "\n```" in prompt
    for category in ("**PII (Personally Identifiable Information):**", "**Sensitive:**", "**Public:**"):
        assert category in prompt
    assert "**Field Name**" in prompt


def test_builders_are_deterministic():
    assert build_compliance_prompt(SCHEMA, QUERY) == build_compliance_prompt(SCHEMA, QUERY)
    assert build_classification_prompt(SCHEMA, "x") == build_classification_prompt(SCHEMA, "x")
