"""
Prompt text sent to the completion API.
"""

SYSTEM_PROMPT = (
    "You are a helpful assistant that receives content from Slack threads. "
    "Please respond based on the thread content provided."
)

THREAD_HEADER = "--- SLACK THREAD CONTENT ---\n\n"
THREAD_FOOTER = "--- END OF SLACK THREAD ---"
NEW_THREAD_PREFIX = "New Slack thread content:\n\n"

NO_RESPONSE_FALLBACK = "No response from ChatGPT"
