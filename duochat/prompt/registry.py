from __future__ import annotations

from pathlib import Path

from duochat.models.enums import AnalysisType

DEFAULT_QUESTIONS: dict[AnalysisType, str] = {
    AnalysisType.qa: "Przeanalizuj ten dokument PDF i odpowiedz na pytania użytkownika.",
    AnalysisType.detailed: "Przeanalizuj ten dokument PDF i opisz jego zawartość.",
}

ATTACHMENT_NOTE = "Załączono plik: {name}. Proszę przeanalizuj jego zawartość jeśli to możliwe."


def get_prompt_text(analysis_type: AnalysisType) -> str:
    templates_dir = Path(__file__).resolve().parent / "templates"
    path = templates_dir / f"document_{analysis_type.value}.md"
    return path.read_text(encoding="utf-8").strip()
