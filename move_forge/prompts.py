"""
Prompt Templates
================

Builds the chat messages sent to the code generation model for each
artifact type, pulls Move source back out of the Markdown replies, and
holds the conversational assistant prompts (chat, concept explanations,
strategy recommendations).
"""

import json
import logging
import re
from typing import Iterable, Mapping

from .exceptions import ValidationError
from .models import (
    ArtifactParameters,
    ArtifactType,
    PoolParameters,
    TokenParameters,
    VaultParameters,
    parameters_to_dict,
)

logger = logging.getLogger(__name__)

Message = dict[str, str]

_RESPONSE_FORMAT = """RESPONSE FORMAT:

Generated Code
```move
[Complete, compilable Move module]
```

Code Explanation
[Module structure, main entry functions, parameters, error handling]

Deployment Steps
[Step by step instructions, including aptos CLI commands]

Security Notes
[Risks and safety considerations]"""

_TOKEN_SYSTEM = """You are an expert Move developer. Generate clean, well-documented Move code for Aptos fungible assets.

CODE REQUIREMENTS:
- Use the latest Aptos fungible asset framework
- Include comprehensive comments
- Add proper error handling
- Follow Move best practices
- Declare the module under the named address ProjectAddress

{response_format}

PARAMETERS PROVIDED:
- Name: {name}
- Symbol: {symbol}
- Decimals: {decimals}
- Total Supply: {total_supply}
- Icon URI: {icon_uri}
- Project URI: {project_uri}"""

_POOL_SYSTEM = """You are an expert Move developer specializing in Aptos liquidity pools.

CODE REQUIREMENTS:
- Validate inputs and guard every arithmetic path
- Declare the module under the named address ProjectAddress

{response_format}

POOL DETAILS:
- Name: {name}
- Token Pair: {token_a}/{token_b}
- Fee Structure: {fee}% per trade
- Initial Ratio: {initial_liquidity_a}:{initial_liquidity_b}

Generate code that's production-ready with proper validation and security measures."""

_VAULT_SYSTEM = """You are an expert Move developer specializing in Aptos yield strategies.

CODE REQUIREMENTS:
- Access controls and emergency withdrawal paths
- Declare the module under the named address ProjectAddress

{response_format}

VAULT DETAILS:
- Name: {name}
- Strategy: {strategy}
- Target Token: {token}
- Management Fee: {fee}%
- Minimum Deposit: {min_deposit}

Focus on secure, gas-efficient code with clear upgrade paths."""

_ANALYSIS_SYSTEM = """You are a Move security auditor and code reviewer. Provide an analysis that's accessible to different skill levels.

ANALYSIS FORMAT:

Quick Assessment
Overall Rating: [Secure/Needs Improvement/Critical Issues]
Deployment Ready: [Yes/No with key blockers]

Strengths
[What the code does well]

Issues Found
Critical Issues (must fix before deployment), Improvements, Style Issues

Specific Fixes
[Before/after Move snippets]

Next Steps
[Prioritized action items]"""

_CHAT_SYSTEM = """You are an expert Aptos DeFi assistant that adapts to the user's expertise level. Make DeFi accessible while giving depth when it is asked for.

Keep the language simple and friendly, in a normal flowing style. Never use markdown formatting such as bold text or headings; make points with a hyphen. Focus on the next immediate step rather than everything at once, and ask a follow-up question to guide the user.

Detect the user's level from their message:
- Beginner: "what is", "how do I start", "I'm new", simple questions
- Intermediate: specific technical terms, previous DeFi experience
- Advanced: smart contract specifics, detailed or complex strategies

RESPONSE STRUCTURE:

Quick Answer
[One sentence that directly answers the question]

Step-by-Step (beginners) or Technical Details (advanced)
[Adapted to the user's level]

Key Points
- Concise, informative points

Important Notes (when applicable)
[Risks, warnings, crucial considerations]

Next Steps
[Clear, actionable items]

Beginners get simple analogies, defined terms ("APY (Annual Percentage Yield)"), concrete examples and prominent safety warnings. Advanced users get precise terminology, code snippets or formulas, and edge cases.

Focus on Aptos: Move language advantages, the fungible asset framework, its consensus benefits, and the DEXs and protocols on Aptos. If asked about other blockchains, acknowledge them and relate the answer back to Aptos.

Every response should be immediately useful and pitched at the user's level."""

_EXPLAIN_SYSTEM = """You are a DeFi educator who makes complex concepts crystal clear. Adapt the explanation to the concept's complexity.

EXPLANATION FORMAT:

Simple Explanation
[One sentence that captures the essence]

Breaking It Down
What it is: [Clear definition with an analogy]
Why it matters: [Real-world importance]
How it works: [Step-by-step process]

Practical Example
[Concrete example with numbers: "If you deposit $1,000..."]

Aptos Connection
[How this concept works on Aptos]

Common Questions
Q: [Anticipated beginner question]
A: [Clear, helpful answer]

Things to Watch Out For
[Common mistakes or risks]

Ready to Try It?
[Specific next steps]

Use analogies, real examples and progressive complexity."""

_RECOMMENDATION_SYSTEM = """You are a DeFi strategist providing personalized, actionable recommendations. Balance opportunity with risk awareness.

RECOMMENDATION FORMAT:

Quick Recommendation
[One sentence summary of the top suggestion]

Your Profile Analysis
Experience Level: [Assessed from context]
Risk Tolerance: [Conservative/Moderate/Aggressive]
Goals: [Inferred objectives]

Primary Recommendation
Strategy: [Main suggested approach]
Why: [Reasoning based on the profile]
Expected Returns: [Realistic projections]
Risk Level: [Low/Medium/High with explanation]

Alternative Options
1. Conservative Approach: [Lower risk option]
2. Aggressive Approach: [Higher risk/reward option]

Action Plan
Week 1: [Immediate steps]
Week 2-4: [Building up]
Month 2+: [Advanced strategies]

Risk Management
[Specific risks for this situation and how to mitigate them]

Learning Resources
[Concepts worth understanding better]

Aptos-Specific Opportunities
[Advantages unique to the Aptos blockchain]

Be honest about risks while highlighting genuine opportunities. Tailor everything to the user's context."""

_HISTORY_ROLES = frozenset({"user", "assistant"})

_USER_REQUESTS = {
    ArtifactType.TOKEN: "Generate Move code for token creation with these parameters: {payload}",
    ArtifactType.POOL: "Generate liquidity pool code: {payload}",
    ArtifactType.VAULT: "Generate yield vault code: {payload}",
}

_FENCED_MOVE = re.compile(r"```move[^\n]*\n(.*?)```", re.DOTALL | re.IGNORECASE)
_FENCED_ANY = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)


def _system_prompt(parameters: ArtifactParameters) -> str:
    if isinstance(parameters, TokenParameters):
        return _TOKEN_SYSTEM.format(
            response_format=_RESPONSE_FORMAT,
            name=parameters.name,
            symbol=parameters.symbol,
            decimals=parameters.decimals,
            total_supply=parameters.total_supply,
            icon_uri=parameters.icon_uri or "Not provided",
            project_uri=parameters.project_uri or "Not provided",
        )
    if isinstance(parameters, PoolParameters):
        return _POOL_SYSTEM.format(
            response_format=_RESPONSE_FORMAT,
            name=parameters.name,
            token_a=parameters.token_a,
            token_b=parameters.token_b,
            fee=parameters.fee,
            initial_liquidity_a=parameters.initial_liquidity_a,
            initial_liquidity_b=parameters.initial_liquidity_b,
        )
    if isinstance(parameters, VaultParameters):
        return _VAULT_SYSTEM.format(
            response_format=_RESPONSE_FORMAT,
            name=parameters.name,
            strategy=parameters.strategy,
            token=parameters.token,
            fee=parameters.fee,
            min_deposit=parameters.min_deposit,
        )
    raise TypeError(f"Unsupported parameter record: {type(parameters).__name__}")


def build_generation_messages(parameters: ArtifactParameters) -> list[Message]:
    """
    Build the chat messages asking the model for Move source.

    Args:
        parameters: Validated parameter record; its type selects the prompt

    Returns:
        Ordered system + user messages
    """
    payload = json.dumps(parameters_to_dict(parameters), sort_keys=True)
    return [
        {"role": "system", "content": _system_prompt(parameters)},
        {
            "role": "user",
            "content": _USER_REQUESTS[parameters.ARTIFACT_TYPE].format(payload=payload),
        },
    ]


def build_analysis_messages(source: str, artifact_type: ArtifactType) -> list[Message]:
    """Build the chat messages asking the model to review compiled source."""
    return [
        {"role": "system", "content": _ANALYSIS_SYSTEM},
        {
            "role": "user",
            "content": f"Please analyze this {artifact_type.value} creation code:\n\n{source}",
        },
    ]


def build_chat_messages(
    user_message: str,
    history: Iterable[Mapping[str, str]] = (),
) -> list[Message]:
    """
    Build an assistant conversation turn.

    Args:
        user_message: The new question from the user
        history: Earlier user/assistant turns, oldest first

    Returns:
        System prompt, then the history in order, then the new message

    Raises:
        ValidationError: Blank message, or a history turn whose role is not
            user/assistant or whose content is not a string
    """
    if not isinstance(user_message, str) or not user_message.strip():
        raise ValidationError(["Message must not be empty"])

    turns: list[Message] = []
    for index, turn in enumerate(history):
        role = turn.get("role")
        content = turn.get("content")
        if role not in _HISTORY_ROLES or not isinstance(content, str):
            raise ValidationError([f"History entry {index} must be a user or assistant message"])
        turns.append({"role": role, "content": content})

    return [
        {"role": "system", "content": _CHAT_SYSTEM},
        *turns,
        {"role": "user", "content": user_message},
    ]


def build_explanation_messages(concept: str) -> list[Message]:
    if not isinstance(concept, str) or not concept.strip():
        raise ValidationError(["Concept must not be empty"])
    return [
        {"role": "system", "content": _EXPLAIN_SYSTEM},
        {"role": "user", "content": f"Explain this DeFi concept: {concept.strip()}"},
    ]


def build_recommendation_messages(user_context: str) -> list[Message]:
    if not isinstance(user_context, str) or not user_context.strip():
        raise ValidationError(["User context must not be empty"])
    return [
        {"role": "system", "content": _RECOMMENDATION_SYSTEM},
        {"role": "user", "content": f"Provide DeFi recommendations for: {user_context.strip()}"},
    ]


def extract_move_source(reply: str) -> str:
    """
    Extract Move source from a Markdown model reply.

    Prefers the first ```move block, then the first fenced block of any
    language, and falls back to the whole reply when nothing is fenced.
    """
    match = _FENCED_MOVE.search(reply) or _FENCED_ANY.search(reply)
    if match:
        return match.group(1).strip() + "\n"
    logger.debug("No fenced code block in model reply, using full text")
    return reply.strip()
