"""Builds extraction prompts enriched with annotated examples."""

from domain.models import TrainingExample

MAX_PROMPT_EXAMPLES = 5


def build_enhanced_prompt(base_prompt: str, examples: list[TrainingExample]) -> str:
    """
    Appends organisation training examples to the extraction prompt.

    Each example lists the first marked value of every field that has one.
    At most five examples are used.

    Args:
        base_prompt: The default extraction system prompt.
        examples: Saved training examples, newest first.

    Returns:
        The enhanced system prompt.
    """
    lines = [base_prompt.rstrip(), "", "TRAINING EXAMPLES FROM YOUR ORGANIZATION:"]

    for index, example in enumerate(examples[:MAX_PROMPT_EXAMPLES], start=1):
        lines.append("")
        lines.append(f"Example {index}:")
        for field, marks in example.marked_fields.items():
            if marks and marks[0].get("text"):
                lines.append(f'- {field}: "{marks[0]["text"]}"')

    lines.append("")
    lines.append(
        "Based on these examples and patterns, extract similar information "
        "from the transcript."
    )
    lines.append("Pay special attention to the patterns shown in the training examples above.")
    return "\n".join(lines) + "\n"
