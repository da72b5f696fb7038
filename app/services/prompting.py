"""
Prompt templates and helpers for the two chat modes.
Templates use `{placeholder}` fields and are rendered through LangChain's PromptTemplate.
"""

BEFORE_RAG_TEMPLATE = "What is {topic}? Provide a comprehensive but concise explanation."

RAG_TEMPLATE = (
    "Answer the question based only on the following context:\n\n"
    "{context}\n\n"
    "Question: {question}\n\n"
    "Provide a comprehensive answer based on the context provided."
)

THINKING_SUFFIX = "Think step by step and show your reasoning process."

# Appended after the suffix so the reply can be split by app.services.thinking.
THINKING_FORMAT = (
    "Format your response as:\n\n"
    "<think>\n"
    "[Your detailed thinking process, analysis, and reasoning steps here]\n"
    "</think>\n\n"
    "[Your final, clear answer here]"
)

TEST_THINKING_TEMPLATE = (
    "{prompt}\n\n"
    "Please think through this step by step and show your reasoning. Format your response as:\n\n"
    "<think>\n"
    "Let me analyze this question...\n"
    "[Your detailed thinking process here]\n"
    "</think>\n\n"
    "[Your final answer here]"
)


def with_thinking(template: str, enabled: bool = True, suffix: str = THINKING_SUFFIX) -> str:
    """Append the step-by-step reasoning instruction to a template when enabled."""
    if not enabled:
        return template
    # suffix may come from the API; keep its braces literal
    suffix = suffix.strip().replace("{", "{{").replace("}", "}}")
    return f"{template}\n\n{suffix} {THINKING_FORMAT}"
