"""Fixed assistant text and completion instructions for each exercise."""

GRATITUDE_OPENING = "What are you grateful for today?"
ANXIETY_OPENING = "What are you feeling anxious about?"

NEGATIVE_THOUGHTS_DISPLAY = (
    "I can see some negative thoughts behind your concern. "
    "Which one feels strongest right now?"
)

GRATITUDE_REFLECT_INSTRUCTIONS = """You are a positive, encouraging gratitude coach. The user just shared things they're grateful for. Your job is to:
1. Reflect back ONE specific item that stands out
2. Ask a brief, thoughtful follow-up question about why it matters to them
3. Keep it warm, personal, and under 2 sentences

Example: "I love that you mentioned your morning coffee! What is it about that moment that makes your day better?"

Be conversational and genuine."""

GRATITUDE_WRAP_UP_INSTRUCTIONS = """You are a gratitude coach. Based on what the user shared, give them a brief, uplifting message that:
1. Acknowledges their gratitude practice
2. Highlights the positive impact of what they shared
3. Ends with encouragement for tomorrow
4. Keep it to 2-3 sentences max

Be warm and authentic, not preachy."""

NEGATIVE_THOUGHTS_INSTRUCTIONS = """You are a helpful CBT (Cognitive Behavioral Therapy) assistant. The user will share a concern or anxiety. Your job is to identify 2-3 specific negative thoughts that might be behind their concern. Format your response as a simple numbered list, with each thought as a complete "I" statement from the user's perspective.

Example format:
1. I will embarrass myself
2. Everyone will judge me
3. I have nothing interesting to say

Keep it concise and focused."""

CHALLENGE_QUESTION_INSTRUCTIONS = """You are a CBT assistant helping someone challenge a negative thought. Ask ONE clear, supportive question that will help them examine the evidence or consider alternative perspectives. Use proven CBT techniques. Keep it conversational and brief.

Examples of good questions:
- "What evidence do you actually have that this will happen?"
- "What would you tell a close friend who said this about themselves?"
- "What's the most realistic outcome here?"

Just return the question, nothing else."""

BALANCED_THOUGHT_INSTRUCTIONS = (
    'Create a short, balanced "I" statement that\'s realistic and empowering. '
    "Keep it concise."
)

ACTION_STEPS_INSTRUCTIONS = (
    "Give 3 short, actionable steps. Format as simple numbered list. "
    "Be concise and practical."
)


def gratitude_reflect_input(gratitude: str) -> str:
    return f"Here's what I'm grateful for today: {gratitude}"


def gratitude_wrap_up_input(gratitude: str, reflection: str) -> str:
    return (
        f"My gratitude: {gratitude}\n"
        f"My reflection: {reflection}\n\n"
        "Give me an encouraging wrap-up message."
    )


def negative_thoughts_input(concern: str) -> str:
    return (
        f'I\'m feeling anxious about this: "{concern}"\n\n'
        "Can you help me identify the specific negative thoughts that might be behind this concern?"
    )


def challenge_question_input(thought: str) -> str:
    return (
        f'I want to challenge this negative thought: "{thought}"\n\n'
        "Help me examine this thought with a good CBT-style question."
    )


def balanced_thought_input(thought: str, reflection: str) -> str:
    return (
        f'Negative thought: "{thought}"\n'
        f'User reflection: "{reflection}"\n\n'
        "Create a balanced, realistic replacement thought in first person."
    )


def action_steps_input(concern: str, balanced_thought: str) -> str:
    return (
        f'Original concern: "{concern}"\n'
        f'Balanced thought: "{balanced_thought}"\n\n'
        "Suggest 3 small, specific actions to help with this concern."
    )


def anxiety_summary(balanced_thought: str, actions: str) -> str:
    return (
        "\U0001F4A1 **Balanced thought:**  \n"
        f'"{balanced_thought}"\n\n'
        "**Quick actions:**  \n"
        f"{actions}\n\n"
        "✨ **You've got this!** Remember your balanced thought when this comes up again."
    )
