"""Append-only conversation log backing the transcript view."""

from __future__ import annotations

from dataclasses import replace

from dyslu.models import RevealState, Role, TurnRecord


class ConversationLog:
    """Chronological sequence of turn records; never reordered or truncated."""

    def __init__(self) -> None:
        self._records: list[TurnRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> TurnRecord:
        return self._records[index]

    def append(self, record: TurnRecord) -> int:
        """Append a record and return its index."""
        if record.role == Role.ASSISTANT and (not self._records or self._records[-1].role != Role.USER):
            raise ValueError("An assistant record must directly follow the user record it answers")
        self._records.append(record)
        return len(self._records) - 1

    def update_reveal_state(
        self,
        index: int,
        state: RevealState,
        *,
        revealed_chars: int | None = None,
    ) -> TurnRecord:
        """Replace only the reveal fields of the record at ``index``."""
        record = self._records[index]
        chars = record.revealed_chars if revealed_chars is None else max(0, min(revealed_chars, len(record.text)))
        updated = replace(record, reveal_state=state, revealed_chars=chars)
        self._records[index] = updated
        return updated

    def all(self) -> tuple[TurnRecord, ...]:
        """Snapshot for rendering."""
        return tuple(self._records)

    def revealing(self) -> list[int]:
        return [idx for idx, record in enumerate(self._records) if record.reveal_state == RevealState.REVEALING]

    def chat_messages(self) -> list[dict[str, str]]:
        """Full exchange so far in chat-completion message form."""
        return [{"role": record.role.value, "content": record.text} for record in self._records]
