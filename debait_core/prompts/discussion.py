"""圆桌讨论提示词生成。

讨论模式下不续接 agent 自己的会话，每一轮都把完整的讨论记录重新渲染成提示词，
并告诉目标 agent：还有谁在场、要直接回应他们的观点、不要在回答前加自己的名字。
"""

from typing import Iterable, List, Optional, Sequence

from debait_core.domain.models import MODERATOR_ROLE, SUPPORTED_AGENT_KINDS, TranscriptEntry
from debait_core.providers.registry import display_name


def other_participants(
    transcript: Sequence[TranscriptEntry],
    target: str,
    participants: Optional[Iterable[str]] = None,
) -> List[str]:
    """确定除目标之外的参与者展示名。

    优先使用显式参与者列表；否则从讨论记录里找出现过的其他 agent；
    仍然为空时默认为其他所有已知 agent。
    """

    explicit = [display_name(p) for p in (participants or []) if p and p != target]
    if explicit:
        return explicit

    seen: List[str] = []
    for entry in transcript:
        if entry.role == target or entry.role not in SUPPORTED_AGENT_KINDS:
            continue
        name = display_name(entry.role)
        if name not in seen:
            seen.append(name)
    if seen:
        return seen
    return [display_name(kind) for kind in SUPPORTED_AGENT_KINDS if kind != target]


def render_transcript(transcript: Sequence[TranscriptEntry]) -> str:
    parts: List[str] = []
    for entry in transcript:
        if entry.role == MODERATOR_ROLE:
            parts.append(f"[Human]: {entry.content}\n\n")
        elif entry.role in SUPPORTED_AGENT_KINDS:
            parts.append(f"[{display_name(entry.role)}]: {entry.content}\n\n")
    return "".join(parts)


def format_discussion_prompt(
    transcript: Sequence[TranscriptEntry],
    target: str,
    participants: Optional[Iterable[str]] = None,
) -> str:
    speaker = display_name(target)
    others = " and ".join(other_participants(transcript, target, participants))
    return (
        f"You are {speaker} in a roundtable discussion with {others} and a human moderator.\n\n"
        f"Here is the full transcript so far:\n\n{render_transcript(transcript)}"
        f"Now respond as {speaker}. Briefly summarize or quote the key points from {others} "
        f"that you are addressing, then give your response. "
        f"Engage directly with what each of the others said: agree, disagree, or build on their points. "
        f"Do not prefix your response with your name."
    )
