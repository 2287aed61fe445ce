from __future__ import annotations

INDEX_PROMPT = """Act as an expert curriculum designer and educational analyst.

I will provide you with a text input. Your goal is to identify the core subject of that text and generate a comprehensive "Learning Index" or Syllabus for a student who wants to master this subject.

**Instructions:**
1. **Analyze the Topic:** Identify the main theme of the input text.
2. **Structure the Knowledge:** Create a logical, step-by-step learning path, starting from fundamental concepts to advanced implications.
3. **Bridge the Gaps:**
    - If a concept is explicitly mentioned in the text, include it.
    - If a concept is crucial to understanding the topic but is missing from the text, you MUST add it to the index to ensure the learning path is complete.
4. **Output Format:** Return the response STRICTLY as a valid JSON object. Do not include markdown formatting (like ```json) or conversational text.

**JSON Schema:**
{
"main_topic": "A short title for the subject",
"topic_summary": "A brief 1-sentence overview of what the text is about",
"learning_modules": [
{
"order": number,
"title": "Title of the concept/module",
"description": "A concise explanation of what will be learned (max 25 words)",
"source_type": "Derived from Text" OR "Recommended Expansion",
"difficulty": "Beginner" OR "Intermediate" OR "Advanced"
}
]
}

**Input Text:**
\"\"\"
{{TEXT_INPUT}}
\"\"\"
"""


ANALYSIS_PROMPT = """You are an expert knowledge management system. Analyze the following text and extract structured knowledge into a JSON format that is optimized for personal learning databases.

SECTION A - Technical Explanation (80-110 words):
Rewrite the text using technical, precise, and formal language. High information density. Focus on methodology and data.

SECTION B - Narrative Explanation (80-110 words):
Transform the content into a fluid narrative essay. Connect ideas logically like a story. Use metaphors if needed.

SECTION C - Implementation Guide:
Create 3 numbered steps for immediate execution. Each step must include:
- action_title: Clear action name
- why: Justification based explicitly on the text
- how: Specific execution method

SECTION D - Quote Mining:
Extract the 2 most brilliant verbatim quotes with high information density. For each quote provide an editor's note (max 20 words) explaining why it's vital and its hidden nuance.

SECTION E - Analysis of Blind Spots (max 50 words):
What does the text NOT say? What questions are unanswered? In what scenarios would this fail?

TEXT TO ANALYZE:
{{CONTENT}}

Respond with ONLY a valid JSON object following this structure:
{
  "response_structure": {
    "section_A_technical_explanation": {"content": "string"},
    "section_B_narrative_explanation": {"content": "string"},
    "section_C_implementation_guide": {
      "steps": [
        {"step_number": 1, "action_title": "string", "why": "string", "how": "string"},
        {"step_number": 2, "action_title": "string", "why": "string", "how": "string"},
        {"step_number": 3, "action_title": "string", "why": "string", "how": "string"}
      ]
    },
    "section_D_quote_mining": {
      "quotes": [
        {"quote_text": "string", "editors_note": "string"},
        {"quote_text": "string", "editors_note": "string"}
      ]
    },
    "section_E_blind_spots": {"content": "string"}
  }
}
"""


ENRICHMENT_PROMPT = """You are a research librarian helping a student.
Search the web and recommend the most useful reading resources (tutorials, documentation, in-depth articles) for learning the following topic.
For each resource give one sentence on what the reader will get from it.

TOPIC:
{{QUERY}}
"""


_TEMPLATES: dict[str, tuple[str, str]] = {
    "index": (INDEX_PROMPT, "{{TEXT_INPUT}}"),
    "analysis": (ANALYSIS_PROMPT, "{{CONTENT}}"),
    "enrichment": (ENRICHMENT_PROMPT, "{{QUERY}}"),
}


def build_prompt(operation: str, text: str) -> str:
    try:
        template, placeholder = _TEMPLATES[operation]
    except KeyError:
        raise ValueError(f"Unknown prompt operation: {operation!r}") from None
    # Single substitution so that placeholder-like text inside `text` is left alone.
    return template.replace(placeholder, text, 1)
