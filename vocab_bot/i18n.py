"""
Message catalogues for the Vocabulary Bot
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "zh-CN"

MESSAGES: dict[str, dict[str, str]] = {
    "zh-CN": {
        "list_separator": "，",
        "lookup.pending": "正在查询，请稍候...",
        "lookup.empty": "请在 @ 我之后输入要查询的单词、短语或句子。",
        "lookup.failed": "❌ 查询失败，请稍后再试。",
        "lookup.truncated": "⚠️ AI 响应超时，结果可能不完整。",
        "analysis.pronunciation": "🎧 *音标*",
        "analysis.examples": "💡 *例句*",
        "analysis.etymology": "🔍 *词源*",
        "analysis.related": "🌱 *词根词缀*",
        "analysis.roots": "词根",
        "analysis.prefixes": "前缀",
        "analysis.suffixes": "后缀",
        "analysis.derivatives": "🤓 *派生*",
        "analysis.synonyms": "🧐 *近义*",
        "analysis.homophones": "🤔 *形似*",
        "translation.title": "📝 *翻译*",
        "translation.grammar": "📐 *语法*",
        "quiz.not_enough_words": "📚 至少需要 {required} 个单词才能开始测验，你目前有 {count} 个。先 @ 我查询更多单词吧！",
        "quiz.generating": "📚 正在根据你的 {count} 个单词生成测验...",
        "quiz.generation_failed": "❌ 生成测验失败，请稍后再试。",
        "quiz.question_header": "📝 *测验 {number}/{total}*",
        "quiz.choose": "请选择正确答案：",
        "quiz.type_answer": "✍️ 请直接回复这条消息作答。",
        "quiz.input_placeholder": "输入你的答案",
        "quiz.correct": "🎉 回答正确！",
        "quiz.wrong": "❌ 回答错误！正确答案是：{answer}",
        "quiz.callback_correct": "✅ 正确！",
        "quiz.callback_wrong": "❌ 错误！",
        "quiz.your_answer": "你的答案：{answer}",
        "quiz.reference_answer": "参考答案：{answer}",
        "quiz.feedback": "💬 {feedback}",
        "quiz.explanation": "📖 {explanation}",
        "quiz.fallback_grading": "⚠️ AI 评分暂不可用，已按完全匹配判定。",
        "quiz.complete": "🎊 *测验完成！*\n\n你的得分：{score}/{total} ({percentage}%)",
        "quiz.expired": "⏰ 测验已过期，请发送 /quiz 开始新的测验。",
        "quiz.question_not_found": "❓ 找不到这道题目。",
        "quiz.already_answered": "ℹ️ 这道题已经回答过了。",
        "quiz.use_buttons": "👆 当前题目是选择题，请点击按钮作答。",
        "quiz.use_reply": "✍️ 当前题目需要输入答案，请直接回复题目消息。",
        "quiz.invalid_data": "无效的测验数据",
        "quiz.advance_failed": "❌ 发送下一题失败：{error}\n测验已结束，请发送 /quiz 重新开始。",
        "model.not_configured": "❌ 没有可用的 AI 模型配置",
        "model.current": "🤖 *当前 AI 模型*\n当前使用：*{backend}*",
        "model.default_marker": " _(默认)_",
        "model.available": "\n\n*可用模型*\n",
        "model.switch_hint": "\n💡 使用 `/model <backend>` 切换模型\n例如: `/model gemini`",
        "model.switched": "✅ 已切换到 *{backend}*",
        "model.unavailable": "❌ 模型 `{backend}` 不可用",
        "language.current": "🌐 当前语言：{language}\n可选：{available}\n使用 `/language <代码>` 切换",
        "language.switched": "✅ 语言已切换为 {language}",
        "language.unsupported": "❌ 不支持的语言：{language}",
        "error.generic": "❌ 处理请求时出错。",
        "error.details": "Error: {error}",
        "unauthorized": "❌ 你没有使用此机器人的权限。",
        "help": (
            "📚 *词汇助手使用指南*\n\n"
            "*🔍 查询单词*\n"
            "在群组或私聊中 @ 我并输入单词或短语：\n"
            "`@{bot} sophisticated`\n\n"
            "我会为你提供：\n"
            "• 发音（IPA音标）\n"
            "• 详细释义、例句\n"
            "• 词源、派生词、同义词和相关词\n"
            "• 语音朗读\n"
            "• 自动保存到你的词汇历史\n\n"
            "*📝 测验*\n"
            "`/quiz` 基于你的词汇历史开始测验\n"
            "• 选择题与翻译题混合\n"
            "• 即时反馈答案正确性\n"
            "• 优先复习需要加强的单词\n\n"
            "*⚙️ 设置*\n"
            "`/model` 查看或切换 AI 模型\n"
            "`/language` 切换界面语言\n\n"
            "祝你学习愉快！🌟"
        ),
        "tips": (
            "💡 *使用提示*\n\n"
            "发送 `/help` 查看完整使用指南\n"
            "发送 `/quiz` 开始词汇测验\n"
            "@ 我并输入单词查询释义\n\n"
            "祝你学习愉快！"
        ),
    },
    "en": {
        "list_separator": ", ",
        "lookup.pending": "Looking it up, please wait...",
        "lookup.empty": "Mention me followed by a word, phrase or sentence to look it up.",
        "lookup.failed": "❌ Lookup failed, please try again later.",
        "lookup.truncated": "⚠️ The AI response timed out, the result may be incomplete.",
        "analysis.pronunciation": "🎧 *IPA*",
        "analysis.examples": "💡 *Examples*",
        "analysis.etymology": "🔍 *Etymology*",
        "analysis.related": "🌱 *Roots & affixes*",
        "analysis.roots": "Roots",
        "analysis.prefixes": "Prefixes",
        "analysis.suffixes": "Suffixes",
        "analysis.derivatives": "🤓 *Derivatives*",
        "analysis.synonyms": "🧐 *Synonyms*",
        "analysis.homophones": "🤔 *Look-alikes*",
        "translation.title": "📝 *Translation*",
        "translation.grammar": "📐 *Grammar*",
        "quiz.not_enough_words": "📚 You need at least {required} words to start a quiz, you have {count}. Mention me with more words first!",
        "quiz.generating": "📚 Generating a quiz from your {count} vocabulary words...",
        "quiz.generation_failed": "❌ Failed to generate a quiz. Please try again later.",
        "quiz.question_header": "📝 *Quiz Question {number}/{total}*",
        "quiz.choose": "Choose the correct answer:",
        "quiz.type_answer": "✍️ Reply to this message with your answer.",
        "quiz.input_placeholder": "Type your answer",
        "quiz.correct": "🎉 Correct!",
        "quiz.wrong": "❌ Wrong! The correct answer is: {answer}",
        "quiz.callback_correct": "✅ Correct!",
        "quiz.callback_wrong": "❌ Wrong!",
        "quiz.your_answer": "Your answer: {answer}",
        "quiz.reference_answer": "Reference answer: {answer}",
        "quiz.feedback": "💬 {feedback}",
        "quiz.explanation": "📖 {explanation}",
        "quiz.fallback_grading": "⚠️ AI grading is unavailable, graded by exact match.",
        "quiz.complete": "🎊 *Quiz Complete!*\n\nYour score: {score}/{total} ({percentage}%)",
        "quiz.expired": "⏰ Quiz expired. Send /quiz to start a new one.",
        "quiz.question_not_found": "❓ Question not found.",
        "quiz.already_answered": "ℹ️ You already answered this question.",
        "quiz.use_buttons": "👆 The current question is multiple choice, please tap a button.",
        "quiz.use_reply": "✍️ The current question needs a typed answer, please reply to it.",
        "quiz.invalid_data": "Invalid quiz data",
        "quiz.advance_failed": "❌ Could not send the next question: {error}\nThe quiz has ended, send /quiz to start again.",
        "model.not_configured": "❌ No AI backend is configured",
        "model.current": "🤖 *Current AI model*\nIn use: *{backend}*",
        "model.default_marker": " _(default)_",
        "model.available": "\n\n*Available models*\n",
        "model.switch_hint": "\n💡 Use `/model <backend>` to switch\nFor example: `/model gemini`",
        "model.switched": "✅ Switched to *{backend}*",
        "model.unavailable": "❌ Backend `{backend}` is not available",
        "language.current": "🌐 Current language: {language}\nAvailable: {available}\nUse `/language <code>` to switch",
        "language.switched": "✅ Language switched to {language}",
        "language.unsupported": "❌ Unsupported language: {language}",
        "error.generic": "❌ Something went wrong while handling your request.",
        "error.details": "Error: {error}",
        "unauthorized": "❌ You are not allowed to use this bot.",
        "help": (
            "📚 *Vocabulary Assistant Guide*\n\n"
            "*🔍 Look up words*\n"
            "Mention me in a group or private chat with a word or phrase:\n"
            "`@{bot} sophisticated`\n\n"
            "You get:\n"
            "• Pronunciation (IPA)\n"
            "• Meanings and examples\n"
            "• Etymology, derivatives, synonyms and look-alikes\n"
            "• Spoken audio\n"
            "• Automatic saving to your vocabulary history\n\n"
            "*📝 Quiz*\n"
            "`/quiz` starts a quiz from your vocabulary history\n"
            "• Mixed multiple choice and translation questions\n"
            "• Instant feedback\n"
            "• Words you struggle with come up more often\n\n"
            "*⚙️ Settings*\n"
            "`/model` shows or switches the AI model\n"
            "`/language` switches the interface language\n\n"
            "Happy learning! 🌟"
        ),
        "tips": (
            "💡 *Tips*\n\n"
            "Send `/help` for the full guide\n"
            "Send `/quiz` to start a vocabulary quiz\n"
            "Mention me with a word to look it up\n\n"
            "Happy learning!"
        ),
    },
}

SUPPORTED_LOCALES = tuple(MESSAGES)


class I18n:
    """Translator bound to one locale"""

    def __init__(self, locale: str | None = None):
        self.locale = locale if locale in MESSAGES else DEFAULT_LOCALE
        self.data = MESSAGES[self.locale]

    def t(self, key: str, **context) -> str:
        """Translate a key, filling {placeholders} from context"""
        template = self.data.get(key)
        if template is None:
            template = MESSAGES[DEFAULT_LOCALE].get(key)
        if template is None:
            logger.warning(f"Translation key not found: {key}")
            return key
        if not context:
            return template
        try:
            return template.format(**context)
        except (KeyError, IndexError) as e:
            logger.warning(f"Missing placeholder {e} for translation key {key}")
            return template

    @property
    def separator(self) -> str:
        return self.data["list_separator"]


def get_i18n(locale: str | None = None) -> I18n:
    """Get a translator for a locale (falls back to the default)"""
    return I18n(locale)
