from __future__ import annotations

from dataclasses import dataclass

from .request import GenerateRequest

DIFFICULTY_GUIDELINES: dict[str, list[str]] = {
    "easy": [
        "Use simple, straightforward language",
        "Focus on basic concepts and definitions",
        "Make the wrong answers clearly incorrect",
        "Target beginner-level knowledge",
        "Avoid complex scenarios or edge cases",
    ],
    "medium": [
        "Use moderate complexity in language and concepts",
        "Mix definition questions with application questions",
        "Use plausible distractors that require some thought",
        "Target intermediate-level knowledge",
    ],
    "hard": [
        "Use advanced terminology and complex scenarios",
        "Focus on application, analysis and synthesis",
        "Make the distinctions between options subtle",
        "Write distractors that test deep understanding",
        "Include edge cases and advanced concepts",
        "Target expert-level knowledge",
    ],
}

QUESTION_SCHEMA_EXAMPLE = (
    '{"question": "Your question here", "options": ["Option A", "Option B", "Option C", "Option D"], '
    '"correctAnswer": 0, "explanation": "Brief explanation"}'
)


@dataclass(frozen=True)
class PromptSpec:
    text: str
    question_count: int
    difficulty: str


def _guidelines(difficulty: str) -> str:
    return "\n".join(f"- {g}" for g in DIFFICULTY_GUIDELINES[difficulty])


def _header(req: GenerateRequest, *, exactly: bool) -> str:
    count = f"EXACTLY {req.question_count}" if exactly else str(req.question_count)
    return (
        f"Generate {count} multiple choice questions at {req.difficulty.upper()} difficulty level "
        f'based on the following topic/prompt: "{req.prompt}".'
    )


def build_stream_prompt(req: GenerateRequest) -> PromptSpec:
    """Prompt asking for one self-contained JSON object per line."""

    text = "\n".join(
        [
            _header(req, exactly=False),
            "",
            "IMPORTANT: Generate the questions one by one, each question as a complete JSON object on its own line.",
            "Do not wrap the output in a code block and do not add any other text.",
            "",
            "Format each question as a single line JSON object like this:",
            QUESTION_SCHEMA_EXAMPLE,
            "",
            "Requirements:",
            f"- Generate exactly {req.question_count} questions",
            "- Each question on a separate line as valid JSON",
            "- correctAnswer is the index (0, 1, 2, or 3) of the correct option",
            "- Questions should be educational and cover different aspects of the topic",
            "",
            f"Guidelines for {req.difficulty.upper()} difficulty:",
            _guidelines(req.difficulty),
            "",
            "Start generating now:",
        ]
    )
    return PromptSpec(text=text, question_count=req.question_count, difficulty=req.difficulty)


def build_batch_prompt(req: GenerateRequest) -> PromptSpec:
    """Prompt asking for a single JSON document with a `questions` array."""

    text = "\n".join(
        [
            _header(req, exactly=True),
            "",
            f"CRITICAL: You must generate EXACTLY {req.question_count} questions - no more, no less.",
            "",
            "Format the response as a valid JSON object with the following structure:",
            '{"questions": [' + QUESTION_SCHEMA_EXAMPLE + "]}",
            "",
            "Requirements:",
            f"- Generate EXACTLY {req.question_count} questions",
            "- Each question must have exactly 4 options",
            "- correctAnswer must be the index (0, 1, 2, or 3) of the correct option",
            "- Questions should be educational and cover different aspects of the topic",
            "- Return ONLY the JSON object, no additional text",
            "",
            f"Guidelines for {req.difficulty.upper()} difficulty:",
            _guidelines(req.difficulty),
        ]
    )
    return PromptSpec(text=text, question_count=req.question_count, difficulty=req.difficulty)
