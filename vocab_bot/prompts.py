"""
Prompt builders for lookups, quiz generation and answer grading
"""

from enum import Enum

from .chat_gateway import ChatMessage, ChatParams

LANGUAGE_NAMES = {
    "zh-CN": "Simplified Chinese",
    "en": "English",
}

ACKNOWLEDGEMENT = "Understood. Please give me the input."


class InputKind(str, Enum):
    """What the user asked to look up"""

    WORD = "word"
    PHRASE = "phrase"
    SENTENCE = "sentence"


def language_name(locale: str | None) -> str:
    return LANGUAGE_NAMES.get(locale or "", LANGUAGE_NAMES["zh-CN"])


def classify_prompt(text: str) -> ChatParams:
    """Ask for word / phrase / sentence, nothing else"""
    system = (
        "You are an English text classifier. Classify the user's input into exactly "
        "one of: word, phrase, sentence.\n"
        '- A single word: reply "word".\n'
        '- A group of words that is not a complete sentence: reply "phrase".\n'
        '- A complete sentence: reply "sentence".\n'
        "Reply with the category only, no explanation.\n"
        "Examples:\n"
        "Input: prevalent\nOutput: word\n"
        "Input: he is a boy\nOutput: sentence\n"
        "Input: real estate\nOutput: phrase"
    )
    return ChatParams(
        messages=[
            ChatMessage("system", system),
            ChatMessage("assistant", ACKNOWLEDGEMENT),
            ChatMessage("user", f"Input: {text}"),
        ],
        temperature=0.3,
    )


def parse_classification(content: str | None) -> InputKind:
    """Read the classifier reply; anything unrecognised is a sentence"""
    answer = (content or "").strip().strip("\"'.`").lower()
    for kind in InputKind:
        if answer == kind.value:
            return kind
    # Tolerate chatty replies such as "Output: phrase"
    for kind in (InputKind.PHRASE, InputKind.WORD):
        if answer.endswith(kind.value):
            return kind
    return InputKind.SENTENCE


ANALYSIS_EXAMPLE = """[word]
text = "like"
[pronunciation]
ipa = "/laɪk/"
[[meaning]]
part_of_speech = "v."
definitions = ["喜欢", "喜爱"]
[[meaning]]
part_of_speech = "prep."
definitions = ["像", "如同"]
[[example]]
sentence = "I really like chocolate ice cream."
translation = "我真的很喜欢巧克力冰淇淋"
[[example]]
sentence = "She looks like her mother."
translation = "她长得像她的母亲"
[[example]]
sentence = "I like your idea."
translation = "我喜欢你的想法"
[origin]
etymology = "源自古英语 lician，意为爱、喜欢。"
[related]
prefixes = []
suffixes = ["-ly"]
roots = ["lik-"]
[[derivatives]]
word = "dislike"
meaning = ["不喜欢", "厌恶"]
[[derivatives]]
word = "unlike"
meaning = ["不像", "与...不同"]
[[synonyms]]
word = "enjoy"
meaning = ["享受", "喜爱"]
[[synonyms]]
word = "adore"
meaning = ["崇拜", "爱慕"]
[[homophones]]
word = "hike"
meaning = ["远足", "徒步"]
[[homophones]]
word = "bike"
meaning = ["自行车"]"""


def analyze_prompt(text: str, locale: str | None = None) -> ChatParams:
    """Streamed word/phrase analysis as TOML"""
    language = language_name(locale)
    system = (
        "You are an advanced English dictionary engine. For the word or phrase the "
        "user gives you:\n"
        "1. Translate it directly without extra explanation.\n"
        "2. If it is misspelled, silently correct it to the most likely intended "
        "word and use the corrected form in [word] text.\n"
        "3. Give its base form with the American IPA.\n"
        "4. List every meaning with its part of speech, and give at least three "
        "bilingual example sentences in total.\n"
        "5. List related roots, prefixes and suffixes.\n"
        "6. List derivatives.\n"
        "7. List synonyms.\n"
        "8. List words that look or sound similar.\n"
        f"Write every translation, definition and meaning in {language}. "
        "Output only TOML with exactly the structure of this example, no Markdown "
        "code fences.\n"
        "Input: like\n"
        "Output:\n"
        f"{ANALYSIS_EXAMPLE}"
    )
    return ChatParams(
        messages=[
            ChatMessage("system", system),
            ChatMessage("assistant", ACKNOWLEDGEMENT),
            ChatMessage("user", f"Input: {text}"),
        ],
        temperature=0.7,
    )


TRANSLATION_EXAMPLE = """[sentence]
origin = "The little girl, who is crying as if her heart would break, said that she had not seen her mother for two hours."
text = "那个小女孩哭得伤心欲绝，她说她已经两个小时没见到妈妈了。"
[[grammar]]
type = "名词短语"
text = "The little girl"
example_sentence = "The tall boy with the red hat"
example_translation = "戴着红帽子的高个男孩"
[[grammar]]
type = "定语从句"
text = "who is crying as if her heart would break"
example_sentence = "which is known for its beautiful beaches"
example_translation = "以其美丽的海滩而闻名"
[[grammar]]
type = "过去完成时"
text = "she had not seen her mother"
example_sentence = "He had already left when I arrived."
example_translation = "我到的时候他已经走了。"
"""


def translate_prompt(text: str, locale: str | None = None) -> ChatParams:
    """Streamed sentence translation with a grammar breakdown as TOML"""
    language = language_name(locale)
    system = (
        "You are an advanced English translation engine. For the sentence the user "
        "gives you:\n"
        f"1. Translate it into {language} without extra explanation.\n"
        "2. If it has grammar mistakes, silently correct them and put the "
        "corrected sentence in [sentence] origin.\n"
        "3. List the grammar structures it uses, each with a bilingual example, "
        "at least three examples in total.\n"
        "Output only TOML with exactly the structure of this example, no Markdown "
        "code fences.\n"
        "Output:\n"
        f"{TRANSLATION_EXAMPLE}"
    )
    return ChatParams(
        messages=[
            ChatMessage("system", system),
            ChatMessage("assistant", ACKNOWLEDGEMENT),
            ChatMessage("user", f"Input: {text}"),
        ],
        temperature=0.7,
    )


QUIZ_INSTRUCTIONS = {
    "meaning": (
        'Ask what the word "{word}" means. Give four {language} definitions, exactly '
        "one correct, the others plausible but clearly different."
    ),
    "fill_blank": (
        'Write an English sentence with the word "{word}" replaced by "____" and ask '
        "which word fills the blank. Give four English words as options, exactly one "
        "correct."
    ),
    "synonym": (
        'Ask which option is the closest synonym of "{word}". Give four English '
        "words as options, exactly one correct."
    ),
    "word_form": (
        'Write an English sentence that needs a particular form of "{word}" '
        "(tense, plural, adjective or adverb form) with a blank, and give four "
        "forms of the word as options, exactly one correct."
    ),
    "translation_input": (
        'Write a short English sentence using "{word}" and ask the learner to '
        "translate it into {language}. There are no options; give a reference "
        "translation as correct_answer."
    ),
    "translation_cn_to_en": (
        "Write a short {language} sentence whose natural English translation uses "
        '"{word}" and ask the learner to translate it into English using that word. '
        "There are no options; give a reference English translation as "
        "correct_answer."
    ),
}

MULTIPLE_CHOICE_SHAPE = (
    '{{"type": "{type}", "word": "{word}", "question_text": "...", '
    '"options": ["...", "...", "...", "..."], "correct_index": 0, '
    '"correct_answer": "...", "explanation": "...", "is_input_based": false}}'
)

INPUT_SHAPE = (
    '{{"type": "{type}", "word": "{word}", "question_text": "...", '
    '"options": [], "correct_index": -1, "correct_answer": "...", '
    '"explanation": "...", "is_input_based": true}}'
)


def quiz_question_prompt(
    word: str, question_type: str, input_based: bool, locale: str | None = None
) -> ChatParams:
    """One quiz question about one word, as a JSON object"""
    language = language_name(locale)
    instruction = QUIZ_INSTRUCTIONS[question_type].format(word=word, language=language)
    shape = (INPUT_SHAPE if input_based else MULTIPLE_CHOICE_SHAPE).format(
        type=question_type, word=word
    )
    system = (
        "You are a vocabulary quiz generator for English learners whose native "
        f"language is {language}. Generate exactly one quiz question as a JSON "
        "object with this shape:\n"
        f"{shape}\n"
        f"Write question_text and explanation in {language}. "
        "Return ONLY the JSON object, no Markdown, no extra text."
    )
    return ChatParams(
        messages=[
            ChatMessage("system", system),
            ChatMessage("user", instruction),
        ],
        temperature=0.7,
    )


def grading_prompt(
    question_text: str,
    reference_answer: str,
    user_answer: str,
    target_word: str | None = None,
    locale: str | None = None,
) -> ChatParams:
    """Ask for a verdict on a free-text translation answer"""
    language = language_name(locale)
    word_rule = (
        f'The answer must use the word "{target_word}" (any grammatical form). '
        if target_word
        else ""
    )
    system = (
        "You grade translation answers from language learners. Accept answers that "
        "convey the same meaning as the reference, even with different wording or "
        "small spelling mistakes. "
        f"{word_rule}"
        'Reply with ONLY a JSON object: {"isCorrect": true or false, "feedback": '
        f'"one or two sentences in {language}"}}'
    )
    user = (
        f"Question: {question_text}\n"
        f"Reference answer: {reference_answer}\n"
        f"Learner answer: {user_answer}"
    )
    return ChatParams(
        messages=[
            ChatMessage("system", system),
            ChatMessage("user", user),
        ],
        temperature=0.3,
    )
