"""
Message formatting for lookups and quizzes

Lookup documents come from a parser that may have seen only part of the
reply, so every field is optional and may have an unexpected type.
Values are escaped for Telegram's legacy Markdown mode.
"""

import logging
from typing import Any

from telegram.helpers import escape_markdown

from .core.quiz.models import QuizQuestion
from .i18n import I18n
from .utils import option_label

logger = logging.getLogger(__name__)

PARSE_MODE = "Markdown"


def md(value: Any) -> str:
    """Escape a value for Markdown (legacy) messages"""
    return escape_markdown(str(value), version=1)


def _table(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _tables(value: Any) -> list[dict]:
    """A TOML array of tables; a lone table counts as one item"""
    if isinstance(value, dict):
        return [value]
    if isinstance(value, list):
        return [item for item in value if isinstance(item, dict)]
    return []


def _strings(value: Any) -> list[str]:
    if isinstance(value, str):
        return [value] if value.strip() else []
    if isinstance(value, list):
        return [str(item) for item in value if isinstance(item, (str, int, float)) and str(item).strip()]
    return []


def _join(value: Any, i18n: I18n) -> str:
    return i18n.separator.join(md(item) for item in _strings(value))


def analysis_word(parsed: Any) -> str | None:
    """The corrected word of an analysis document, if already parsed"""
    if not isinstance(parsed, dict):
        return None
    word = parsed.get("word")
    if isinstance(word, dict):
        word = word.get("text")
    if isinstance(word, str) and word.strip():
        return word.strip()
    return None


def analysis_examples(parsed: Any) -> list[tuple[str, str | None]]:
    """(sentence, translation) pairs of an analysis document"""
    if not isinstance(parsed, dict):
        return []
    examples = []
    for example in _tables(parsed.get("example")):
        sentence = example.get("sentence")
        if not isinstance(sentence, str) or not sentence.strip():
            continue
        translation = example.get("translation")
        if not isinstance(translation, str) or not translation.strip():
            translation = None
        examples.append((sentence.strip(), translation))
    return examples


def _word_list_section(title: str, items: Any, i18n: I18n) -> list[str]:
    lines = []
    for item in _tables(items):
        word = item.get("word")
        if not isinstance(word, str) or not word.strip():
            continue
        meaning = _join(item.get("meaning"), i18n)
        lines.append(f"_{md(word)}_ {meaning}".rstrip())
    return [title, *lines] if lines else []


def render_analysis(parsed: Any, i18n: I18n) -> str:
    """
    Render a word/phrase analysis document

    Sections come in a fixed order and are skipped when missing:
    word, pronunciation, meanings, examples, etymology, roots and affixes,
    derivatives, synonyms, homophones.
    """
    if not isinstance(parsed, dict):
        return ""

    lines: list[str] = []

    word = analysis_word(parsed)
    if word:
        lines.append(f"*{md(word)}*")

    ipa = _table(parsed.get("pronunciation")).get("ipa")
    if isinstance(ipa, str) and ipa.strip():
        lines.append(f"{i18n.t('analysis.pronunciation')} {md(ipa)}")

    for meaning in _tables(parsed.get("meaning")):
        definitions = _join(meaning.get("definitions"), i18n)
        part_of_speech = meaning.get("part_of_speech")
        if isinstance(part_of_speech, str) and part_of_speech.strip():
            lines.append(f"_[{md(part_of_speech)}]_ {definitions}".rstrip())
        elif definitions:
            lines.append(definitions)

    examples = analysis_examples(parsed)
    if examples:
        lines.append(i18n.t("analysis.examples"))
        for sentence, translation in examples:
            lines.append(md(sentence))
            if translation:
                lines.append(f"_{md(translation)}_")

    etymology = _table(parsed.get("origin")).get("etymology")
    if isinstance(etymology, str) and etymology.strip():
        lines.append(i18n.t("analysis.etymology"))
        lines.append(md(etymology))

    related = _table(parsed.get("related"))
    related_lines = []
    for key, label in (
        ("roots", "analysis.roots"),
        ("prefixes", "analysis.prefixes"),
        ("suffixes", "analysis.suffixes"),
    ):
        joined = _join(related.get(key), i18n)
        if joined:
            related_lines.append(f"_[{i18n.t(label)}]_ {joined}")
    if related_lines:
        lines.append(i18n.t("analysis.related"))
        lines.extend(related_lines)

    lines.extend(_word_list_section(i18n.t("analysis.derivatives"), parsed.get("derivatives"), i18n))
    lines.extend(_word_list_section(i18n.t("analysis.synonyms"), parsed.get("synonyms"), i18n))
    lines.extend(_word_list_section(i18n.t("analysis.homophones"), parsed.get("homophones"), i18n))

    return "\n".join(lines)


def translation_origin(parsed: Any) -> str | None:
    """The corrected source sentence of a translation document"""
    origin = _table(_table(parsed).get("sentence")).get("origin")
    if isinstance(origin, str) and origin.strip():
        return origin.strip()
    return None


def render_translation(parsed: Any, i18n: I18n) -> str:
    """Render a sentence translation with its grammar breakdown"""
    if not isinstance(parsed, dict):
        return ""

    lines: list[str] = []
    sentence = _table(parsed.get("sentence"))
    origin = translation_origin(parsed)
    if origin:
        lines.append(f"*{md(origin)}*")
    text = sentence.get("text")
    if isinstance(text, str) and text.strip():
        lines.append(i18n.t("translation.title"))
        lines.append(md(text))

    grammar_lines = []
    for item in _tables(parsed.get("grammar")):
        kind = item.get("type")
        fragment = item.get("text")
        if not isinstance(fragment, str) or not fragment.strip():
            continue
        head = f"_[{md(kind)}]_ " if isinstance(kind, str) and kind.strip() else ""
        grammar_lines.append(f"{head}{md(fragment)}")
        example = item.get("example_sentence")
        if isinstance(example, str) and example.strip():
            translation = item.get("example_translation")
            suffix = f" ({md(translation)})" if isinstance(translation, str) and translation.strip() else ""
            grammar_lines.append(f"  • {md(example)}{suffix}")
    if grammar_lines:
        lines.append(i18n.t("translation.grammar"))
        lines.extend(grammar_lines)

    return "\n".join(lines)


def voice_caption(sentence: str, translation: str | None = None) -> str:
    """Plain-text caption for a voice clip"""
    return f"{sentence} ({translation})" if translation else sentence


def format_quiz_question(question: QuizQuestion, index: int, total: int, i18n: I18n) -> str:
    """Question message; options live on the keyboard for multiple choice"""
    header = i18n.t("quiz.question_header", number=index + 1, total=total)
    lines = [header, "", md(question.question_text), ""]
    if question.is_input_based:
        lines.append(i18n.t("quiz.type_answer"))
    else:
        lines.append(i18n.t("quiz.choose"))
    return "\n".join(lines)


def format_answered_options(question: QuizQuestion, selected_index: int) -> str:
    """Option list with marks once a multiple-choice question is answered"""
    lines = []
    for index, option in enumerate(question.options):
        if index == question.correct_index:
            mark = "✅"
        elif index == selected_index:
            mark = "❌"
        else:
            mark = "▫️"
        lines.append(f"{mark} {option_label(index)}. {md(option)}")
    return "\n".join(lines)


def format_choice_result(
    question: QuizQuestion, index: int, total: int, selected_index: int, i18n: I18n
) -> str:
    """Edited question message after a button answer"""
    was_correct = selected_index == question.correct_index
    lines = [
        i18n.t("quiz.question_header", number=index + 1, total=total),
        "",
        md(question.question_text),
        "",
        format_answered_options(question, selected_index),
        "",
        i18n.t("quiz.correct") if was_correct else i18n.t(
            "quiz.wrong", answer=f"{option_label(question.correct_index)}. {md(question.correct_answer)}"
        ),
    ]
    if question.explanation:
        lines.append(i18n.t("quiz.explanation", explanation=md(question.explanation)))
    return "\n".join(lines)


def format_input_result(
    question: QuizQuestion,
    user_answer: str,
    was_correct: bool,
    i18n: I18n,
    feedback: str | None = None,
    used_fallback: bool = False,
) -> str:
    """Result message for a typed answer"""
    lines = [
        i18n.t("quiz.correct") if was_correct else i18n.t("quiz.wrong", answer=md(question.correct_answer)),
        "",
        i18n.t("quiz.your_answer", answer=md(user_answer)),
        i18n.t("quiz.reference_answer", answer=md(question.correct_answer)),
    ]
    if feedback:
        lines.append(i18n.t("quiz.feedback", feedback=md(feedback)))
    if question.explanation:
        lines.append(i18n.t("quiz.explanation", explanation=md(question.explanation)))
    if used_fallback:
        lines.append(i18n.t("quiz.fallback_grading"))
    return "\n".join(lines)


def format_quiz_summary(score: int, total: int, percentage: int, i18n: I18n) -> str:
    return i18n.t("quiz.complete", score=score, total=total, percentage=percentage)
