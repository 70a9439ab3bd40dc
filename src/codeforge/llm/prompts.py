"""Prompt templates for LLM calls."""

BUILD_UPDATE_PROMPT = (
    "Could you please provide step-by-step instructions with specific file changes as shell "
    "commands, but include all the changes in a single shell block that I can copy and paste "
    "into my terminal to apply them all at once? Please ensure that the changes are grouped "
    "together and can be executed in one go. Start script from cd command to ensure it runs in "
    "correct folder. Don't worry about backup I am using git. Do not use sed or patch - always "
    "use cat with EOF as most reliable way to update file. Omit explanations"
)


SOLUTION_INPUT = "{prompt}\n\n{context}"


BUILD_UPDATE_INPUT = "{instruction}\n\n{solution}\n\n{context}"


DIRECT_UPDATE_INPUT = """{instruction}.

Here is my request:
{prompt}

Here is the context:
{context}"""


def solution_input(prompt: str, context: str) -> str:
    """Input for the reasoning pass."""
    return SOLUTION_INPUT.format(prompt=prompt, context=context)


def build_update_input(solution: str, context: str) -> str:
    """Input for the build pass: instruction, reasoning output, then context."""
    return BUILD_UPDATE_INPUT.format(
        instruction=BUILD_UPDATE_PROMPT, solution=solution, context=context
    )


def direct_update_input(prompt: str, context: str) -> str:
    """Input for one-step generation."""
    return DIRECT_UPDATE_INPUT.format(
        instruction=BUILD_UPDATE_PROMPT, prompt=prompt, context=context
    )
