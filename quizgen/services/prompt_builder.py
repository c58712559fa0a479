"""
Prompt rendering for quiz generation.

Pure functions only: the same QuizRequest always renders the same prompt.
"""

from quizgen.schemas.quiz import QuestionType, QuizRequest

MAX_SOURCE_CHARS = 100_000
TRUNCATION_MARKER = "\n\n[Text truncated due to length...]"


# ── Prompt Fragments ──────────────────────────────────────────────────────────

_PREAMBLE = (
    "You are an expert quiz generator. Generate {count} quiz questions "
    "based on the following study guide material.\n\n"
)

_SCHEMA = (
    "Please format your response as a JSON array with the following structure:\n"
    "[\n"
    "  {\n"
    '    "question": "Question text here",\n'
    '    "type": "multiple-choice" or "short-answer",\n'
    '    "options": ["option1", "option2", "option3", "option4"] (only for multiple-choice),\n'
    '    "correctAnswer": 0 (index for multiple-choice) or "answer text" (for short-answer),\n'
    '    "explanation": "Explanation of the answer"\n'
    "  },\n"
    "  ...\n"
    "]\n\n"
    "Return ONLY the JSON array, no additional text, no markdown formatting "
    "and no code fences."
)


def truncate_source(text: str, limit: int = MAX_SOURCE_CHARS) -> str:
    """Cap the study material at `limit` characters, marking the cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + TRUNCATION_MARKER


def mixed_split(count: int) -> tuple[int, int]:
    """(multiple-choice, short-answer) counts for a mixed quiz."""
    multiple_choice = (count + 1) // 2
    return multiple_choice, count - multiple_choice


def question_type_instruction(question_type: QuestionType, count: int) -> str:
    if question_type == QuestionType.multiple_choice:
        return "All multiple-choice questions"
    if question_type == QuestionType.short_answer:
        return "All short-answer questions"
    if question_type == QuestionType.mixed:
        mc, sa = mixed_split(count)
        return (
            "Mix of multiple-choice and short-answer questions "
            f"({mc} multiple-choice and {sa} short-answer, alternating and "
            "starting with a multiple-choice question)"
        )
    raise ValueError(f"Unknown question type: {question_type!r}")


def build_prompt(request: QuizRequest) -> str:
    """Render a QuizRequest into the single instruction payload sent to the LLM."""
    count = request.question_count
    source = truncate_source(request.source_text)

    requirements = "\n".join(
        [
            f"- Generate exactly {count} questions",
            f"- Difficulty level: {request.difficulty.value}",
            f"- Question type: {question_type_instruction(request.question_type, count)}",
            "- For multiple-choice questions: Provide exactly 4 options, with one correct answer",
            "- For short-answer questions: Provide a model answer",
            "- Each question must have a clear explanation",
            "- Questions should test understanding of key concepts from the study guide",
            "- Make questions relevant to the actual content provided",
        ]
    )

    return (
        _PREAMBLE.format(count=count)
        + f"Study Guide Content:\n{source}\n\n"
        + f"Requirements:\n{requirements}\n\n"
        + _SCHEMA
    )
