"""Prompt templates for daily question generation and single-question regeneration."""

DIFFICULTY_GUIDANCE = [
    "EASY - General knowledge that most people would know",
    "BEGINNER - Basic facts that casual fans might know",
    "BEGINNER - Basic facts that casual fans might know",
    "INTERMEDIATE - Requires some knowledge of the topic",
    "INTERMEDIATE - Requires some knowledge of the topic",
    "INTERMEDIATE - Requires some knowledge of the topic",
    "ADVANCED - For people well-versed in the subject",
    "ADVANCED - For people well-versed in the subject",
    "EXPERT - Very challenging, specialist knowledge",
    "MASTER - Only true experts/enthusiasts would know this",
]


def difficulty_for_position(index: int) -> str:
    """Guidance for the 0-based position in a day's set."""
    index = max(0, min(index, len(DIFFICULTY_GUIDANCE) - 1))
    return DIFFICULTY_GUIDANCE[index]


CLUE_STYLE_RULES = """JEOPARDY!-STYLE CLUES (CRITICAL):
- Write CLUES, not questions: factual statements ending with a period, never a question mark
- Use "This [person/place/thing]..." to refer to the answer
- Keep clues brief and punchy (10-20 words)
- NEVER include the answer in the clue text
- WRONG: "Who plays Iron Man in the Marvel movies?"
- CORRECT: "This actor plays Iron Man in the Marvel movies."

TAGS:
- Exactly 3 unique tags ordered broad -> subcategory -> specific
  (e.g. "History", "American History", "Presidential Elections")
- Tags must not contain "/"

CHOICES:
- Exactly 4 plausible choices
- The correct answer must ALWAYS be the FIRST choice
- The "answer" field must EXACTLY match the first choice, with no extra text"""


DAILY_SET_PROMPT = """Given the theme: "{theme}", generate {count} JEOPARDY!-style clues with PROGRESSIVE DIFFICULTY.

{style_rules}

DIFFICULTY PROGRESSION:
{progression}

ANSWER DIVERSITY:
- Each of the {count} answers must be unique: no repeated person, place, event or object

Return ONLY the JSON array, no markdown, no code blocks, no additional text:
[
  {{
    "question": "This city on the Seine is the capital of France.",
    "choices": ["Paris", "London", "Berlin", "Madrid"],
    "answer": "Paris",
    "tags": ["Geography", "Europe", "Capitals"]
  }}
]"""


REGENERATION_PROMPT = """Given the theme: "{theme}", regenerate question {position} (difficulty level {position}/10) because of this reviewer feedback: "{feedback}"

The rejected question was: "{rejected}"

These answers are already used in the set and MUST NOT be repeated:
{used_answers}

DIFFICULTY for question {position}: {difficulty}

{style_rules}

Return ONLY the JSON object, no markdown, no code blocks, no additional text:
{{
  "question": "This city on the Seine is the capital of France.",
  "choices": ["Paris", "London", "Berlin", "Madrid"],
  "answer": "Paris",
  "tags": ["Geography", "Europe", "Capitals"]
}}"""


def build_daily_set_prompt(theme: str, count: int = 10) -> str:
    progression = "\n".join(
        f"- Question {i + 1}: {difficulty_for_position(i)}" for i in range(count)
    )
    return DAILY_SET_PROMPT.format(
        theme=theme,
        count=count,
        style_rules=CLUE_STYLE_RULES,
        progression=progression,
    )


def build_regeneration_prompt(
    theme: str,
    feedback: str,
    rejected: str,
    used_answers: list[str],
    index: int,
) -> str:
    used = "\n".join(f"- {a}" for a in used_answers) or "- (none)"
    return REGENERATION_PROMPT.format(
        theme=theme,
        position=index + 1,
        feedback=feedback,
        rejected=rejected or "Unknown",
        used_answers=used,
        difficulty=difficulty_for_position(index),
        style_rules=CLUE_STYLE_RULES,
    )
