"""Prompts for network search and per-person analysis."""

PROFILE_CONTEXT_TEMPLATE = """My Profile:
Headline: {headline}
Summary: {summary}
Industry: {industry}"""

NETWORK_QUERY_PROMPT = """You are an AI Network Navigator.

{profile_context}

Network:
{network}

Query: "{query}"

Task:
1. Analyze my profile against the network connections.
2. Identify people matching the query and how they complement ME.
3. Score their relevance (0-100).
4. Provide specific reasoning based on:
   - Complementary Skills (e.g. Dev + Designer)
   - Cultural/Team Fit (Similar roles/companies)
   - Strategic Position (Good match for company)

Only use IDs that appear in the network list.
Return JSON ONLY.

Format:
{{
    "explanation": "High-level summary...",
    "matches": [
        {{
            "id": "p_1",
            "name": "Name",
            "score": 95,
            "reason": "Complementary: They are a Designer which fits your Dev background...",
            "aspect": "Co-founder Fit / Team Culture / Strategic"
        }}
    ]
}}"""

PERSON_ANALYSIS_PROMPT = (
    'Role: {role}. Company: {company}. 3 short conversation starters for a dev. '
    'JSON: {{"analysis": "..."}}'
)
