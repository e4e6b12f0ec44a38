"""
Prompt template and fixed answers for the chat command.

Kept apart from generation logic so the wording can change without
touching the code that calls the model.
"""

from langchain_core.prompts import PromptTemplate

DEFAULT_ROLE = "You are a helpful assistant for the product documentation provided below."

ANSWER_PROMPT = PromptTemplate(
    input_variables=["role", "context", "question"],
    template=(
        "{role}\n"
        "Answer the user's question based strictly on the context provided below.\n"
        "If the answer is not in the context, say 'I don't know'.\n\n"
        "Context:\n{context}\n\n"
        "Question: {question}"
    ),
)

# Returned without calling the model when retrieval finds nothing.
NO_CONTEXT_RESPONSE = (
    "I don't have enough information to answer that based on the documentation."
)

CONTEXT_SEPARATOR = "\n\n"
