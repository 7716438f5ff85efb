"""Numeral and script conversion applied to transcripts before buffering.

Conversions:
- NUMERALS: spelled-out English cardinals to digits ("twenty-one" -> "21")
- PINYIN_TO_HANZI: romanized Mandarin syllables to Chinese characters
- HANZI_TO_PINYIN: Chinese characters to toned pinyin syllables

All conversions are table driven and leave unknown input untouched.
"""

import logging
import re
import unicodedata
from enum import Enum, auto
from typing import Optional

logger = logging.getLogger(__name__)


class ConversionMode(Enum):
    NONE = auto()
    NUMERALS = auto()
    PINYIN_TO_HANZI = auto()
    HANZI_TO_PINYIN = auto()


# ---------------------------------------------------------------------------
# Number words
# ---------------------------------------------------------------------------

_UNITS = {
    "one": 1, "two": 2, "three": 3, "four": 4, "five": 5,
    "six": 6, "seven": 7, "eight": 8, "nine": 9,
}
_TEENS = {
    "ten": 10, "eleven": 11, "twelve": 12, "thirteen": 13, "fourteen": 14,
    "fifteen": 15, "sixteen": 16, "seventeen": 17, "eighteen": 18, "nineteen": 19,
}
_TENS = {
    "twenty": 20, "thirty": 30, "forty": 40, "fifty": 50,
    "sixty": 60, "seventy": 70, "eighty": 80, "ninety": 90,
}
_SCALES = {"thousand": 1_000, "million": 1_000_000, "billion": 1_000_000_000}

# Which word kinds may follow which inside one number
_FOLLOWERS: dict[Optional[str], set[str]] = {
    None: {"zero", "unit", "teen", "tens", "compound"},
    "unit": {"hundred", "scale"},
    "teen": {"hundred", "scale"},
    "compound": {"hundred", "scale"},
    "tens": {"unit", "scale"},
    "hundred": {"unit", "teen", "tens", "compound", "scale", "and"},
    "scale": {"unit", "teen", "tens", "compound", "and"},
    "and": {"unit", "teen", "tens", "compound"},
    "zero": set(),
}

_TRAILING_PUNCT = re.compile(r"^(.*?)([^\w]*)$", re.UNICODE)


def _classify_number_word(word: str) -> Optional[tuple[str, int]]:
    """Return (kind, value) for a lowercase number word, or None."""
    if word == "zero":
        return "zero", 0
    if word in _UNITS:
        return "unit", _UNITS[word]
    if word in _TEENS:
        return "teen", _TEENS[word]
    if word in _TENS:
        return "tens", _TENS[word]
    if word == "hundred":
        return "hundred", 100
    if word in _SCALES:
        return "scale", _SCALES[word]
    if word == "and":
        return "and", 0
    if "-" in word:
        tens, _, unit = word.partition("-")
        if tens in _TENS and unit in _UNITS:
            return "compound", _TENS[tens] + _UNITS[unit]
    return None


def _evaluate(parts: list[tuple[str, int]]) -> int:
    """Evaluate a validated run of (kind, value) number words."""
    total = 0
    current = 0
    for kind, value in parts:
        if kind in ("zero", "unit", "teen", "tens", "compound"):
            current += value
        elif kind == "hundred":
            current = max(current, 1) * 100
        elif kind == "scale":
            total += max(current, 1) * value
            current = 0
    return total + current


def numerals_to_digits(text: str) -> str:
    """Replace standalone English cardinal number words with digits.

    Supported grammar: zero to nineteen, tens, tens-unit hyphenated compounds,
    "hundred", "thousand", "million", "billion" with optional inner "and"
    ("one hundred and five" -> "105"). Punctuation after a number word ends
    the number and is kept ("three, four" -> "3, 4").

    Args:
        text: Transcript text

    Returns:
        Text with number words replaced; whitespace between words collapses to
        single spaces when anything is replaced
    """
    if not text:
        return text

    output: list[str] = []
    # (original word, kind, value, trailing punctuation)
    run: list[tuple[str, str, int, str]] = []
    replaced = False

    def flush_run() -> None:
        nonlocal replaced
        # A dangling "and" is an ordinary word
        tail: list[str] = []
        while run and run[-1][1] == "and":
            tail.insert(0, run.pop()[0])
        if run:
            value = _evaluate([(kind, number) for _, kind, number, _ in run])
            output.append(f"{value}{run[-1][3]}")
            replaced = True
        output.extend(tail)
        run.clear()

    for word in text.split():
        core, trailing = _TRAILING_PUNCT.match(word).groups()
        classified = _classify_number_word(core.lower()) if core else None

        if run and classified is not None:
            last_kind = run[-1][1]
            scales = [number for _, kind, number, _ in run if kind == "scale"]
            kind, number = classified
            if kind not in _FOLLOWERS[last_kind] or (kind == "scale" and scales and number >= scales[-1]):
                flush_run()
        elif run:
            flush_run()

        if classified is None or (not run and classified[0] not in _FOLLOWERS[None]):
            output.append(word)
            continue

        run.append((word, classified[0], classified[1], trailing))
        if trailing:
            flush_run()

    flush_run()

    return " ".join(output) if replaced else text


# ---------------------------------------------------------------------------
# Pinyin <-> Hanzi
# ---------------------------------------------------------------------------

# Ordered by frequency: when several characters share a toneless syllable the
# first one wins for PINYIN_TO_HANZI.
_HANZI_PINYIN: tuple[tuple[str, str], ...] = (
    ("的", "de"), ("一", "yī"), ("是", "shì"), ("不", "bù"), ("了", "le"),
    ("人", "rén"), ("我", "wǒ"), ("在", "zài"), ("有", "yǒu"), ("他", "tā"),
    ("这", "zhè"), ("中", "zhōng"), ("大", "dà"), ("来", "lái"), ("上", "shàng"),
    ("国", "guó"), ("个", "gè"), ("到", "dào"), ("说", "shuō"), ("们", "men"),
    ("为", "wèi"), ("子", "zi"), ("和", "hé"), ("你", "nǐ"), ("地", "dì"),
    ("出", "chū"), ("也", "yě"), ("时", "shí"), ("年", "nián"), ("得", "dé"),
    ("就", "jiù"), ("那", "nà"), ("要", "yào"), ("下", "xià"), ("以", "yǐ"),
    ("生", "shēng"), ("会", "huì"), ("自", "zì"), ("着", "zhe"), ("去", "qù"),
    ("之", "zhī"), ("过", "guò"), ("家", "jiā"), ("学", "xué"), ("对", "duì"),
    ("可", "kě"), ("她", "tā"), ("里", "lǐ"), ("后", "hòu"), ("小", "xiǎo"),
    ("么", "me"), ("心", "xīn"), ("多", "duō"), ("天", "tiān"), ("而", "ér"),
    ("能", "néng"), ("好", "hǎo"), ("都", "dōu"), ("然", "rán"), ("没", "méi"),
    ("日", "rì"), ("于", "yú"), ("起", "qǐ"), ("还", "hái"), ("发", "fā"),
    ("成", "chéng"), ("事", "shì"), ("只", "zhǐ"), ("作", "zuò"), ("当", "dāng"),
    ("想", "xiǎng"), ("看", "kàn"), ("文", "wén"), ("无", "wú"), ("开", "kāi"),
    ("手", "shǒu"), ("十", "shí"), ("用", "yòng"), ("主", "zhǔ"), ("行", "xíng"),
    ("方", "fāng"), ("又", "yòu"), ("如", "rú"), ("前", "qián"), ("所", "suǒ"),
    ("本", "běn"), ("见", "jiàn"), ("经", "jīng"), ("头", "tóu"), ("面", "miàn"),
    ("公", "gōng"), ("同", "tóng"), ("三", "sān"), ("已", "yǐ"), ("老", "lǎo"),
    ("从", "cóng"), ("动", "dòng"), ("两", "liǎng"), ("长", "cháng"), ("知", "zhī"),
    ("民", "mín"), ("样", "yàng"), ("现", "xiàn"), ("分", "fēn"), ("将", "jiāng"),
    ("外", "wài"), ("但", "dàn"), ("身", "shēn"), ("些", "xiē"), ("与", "yǔ"),
    ("高", "gāo"), ("意", "yì"), ("进", "jìn"), ("把", "bǎ"), ("法", "fǎ"),
    ("此", "cǐ"), ("实", "shí"), ("回", "huí"), ("二", "èr"), ("理", "lǐ"),
    ("美", "měi"), ("点", "diǎn"), ("月", "yuè"), ("明", "míng"), ("其", "qí"),
    ("种", "zhǒng"), ("声", "shēng"), ("全", "quán"), ("工", "gōng"), ("己", "jǐ"),
    ("话", "huà"), ("儿", "ér"), ("者", "zhě"), ("向", "xiàng"), ("情", "qíng"),
    ("部", "bù"), ("正", "zhèng"), ("名", "míng"), ("定", "dìng"), ("女", "nǚ"),
    ("问", "wèn"), ("力", "lì"), ("机", "jī"), ("给", "gěi"), ("等", "děng"),
    ("几", "jǐ"), ("很", "hěn"), ("业", "yè"), ("最", "zuì"), ("间", "jiān"),
    ("新", "xīn"), ("什", "shén"), ("打", "dǎ"), ("便", "biàn"), ("位", "wèi"),
    ("因", "yīn"), ("重", "zhòng"), ("被", "bèi"), ("走", "zǒu"), ("电", "diàn"),
    ("四", "sì"), ("第", "dì"), ("门", "mén"), ("相", "xiāng"), ("次", "cì"),
    ("东", "dōng"), ("海", "hǎi"), ("口", "kǒu"), ("使", "shǐ"), ("教", "jiào"),
    ("西", "xī"), ("再", "zài"), ("平", "píng"), ("真", "zhēn"), ("听", "tīng"),
    ("世", "shì"), ("气", "qì"), ("信", "xìn"), ("北", "běi"), ("少", "shǎo"),
    ("关", "guān"), ("内", "nèi"), ("加", "jiā"), ("化", "huà"), ("由", "yóu"),
    ("代", "dài"), ("入", "rù"), ("先", "xiān"), ("山", "shān"), ("五", "wǔ"),
    ("太", "tài"), ("水", "shuǐ"), ("万", "wàn"), ("市", "shì"), ("眼", "yǎn"),
    ("体", "tǐ"), ("别", "bié"), ("处", "chù"), ("才", "cái"), ("场", "chǎng"),
    ("师", "shī"), ("书", "shū"), ("比", "bǐ"), ("住", "zhù"), ("九", "jiǔ"),
    ("笑", "xiào"), ("通", "tōng"), ("马", "mǎ"), ("难", "nán"), ("安", "ān"),
    ("车", "chē"), ("白", "bái"), ("路", "lù"), ("叫", "jiào"), ("常", "cháng"),
    ("金", "jīn"), ("做", "zuò"), ("今", "jīn"), ("京", "jīng"), ("字", "zì"),
    ("请", "qǐng"), ("爱", "ài"), ("让", "ràng"), ("认", "rèn"), ("百", "bǎi"),
    ("吃", "chī"), ("怎", "zěn"), ("六", "liù"), ("朋", "péng"), ("友", "yǒu"),
    ("快", "kuài"), ("八", "bā"), ("七", "qī"), ("语", "yǔ"), ("英", "yīng"),
    ("写", "xiě"), ("呢", "ne"), ("早", "zǎo"), ("音", "yīn"), ("找", "zhǎo"),
    ("孩", "hái"), ("读", "dú"), ("喜", "xǐ"), ("坐", "zuò"), ("谁", "shéi"),
    ("吗", "ma"), ("吧", "ba"), ("啊", "a"), ("谢", "xiè"), ("您", "nín"),
    ("晚", "wǎn"), ("饭", "fàn"), ("喝", "hē"), ("茶", "chá"), ("买", "mǎi"),
    ("卖", "mài"), ("钟", "zhōng"), ("昨", "zuó"), ("星", "xīng"), ("期", "qī"),
    ("忙", "máng"), ("累", "lèi"), ("冷", "lěng"), ("热", "rè"), ("猫", "māo"),
    ("狗", "gǒu"), ("医", "yī"), ("哥", "gē"), ("姐", "jiě"), ("妹", "mèi"),
    ("弟", "dì"), ("欢", "huān"), ("迎", "yíng"), ("汉", "hàn"), ("米", "mǐ"),
    ("块", "kuài"), ("岁", "suì"), ("零", "líng"), ("午", "wǔ"), ("睡", "shuì"),
    ("觉", "jiào"), ("界", "jiè"), ("号", "hào"), ("哪", "nǎ"),
    ("钱", "qián"), ("飞", "fēi"), ("店", "diàn"), ("商", "shāng"),
)


def _toneless(syllable: str) -> str:
    """Strip tone marks from a pinyin syllable; ü becomes 'v'."""
    decomposed = unicodedata.normalize("NFD", syllable.lower())
    result: list[str] = []
    for char in decomposed:
        if char == "\u0308" and result and result[-1] == "u":
            result[-1] = "v"
        elif unicodedata.category(char) != "Mn":
            result.append(char)
    return "".join(result)


_HANZI_TO_SYLLABLE: dict[str, str] = {}
_SYLLABLE_TO_HANZI: dict[str, str] = {}
for _hanzi, _syllable in _HANZI_PINYIN:
    _HANZI_TO_SYLLABLE.setdefault(_hanzi, _syllable)
    _SYLLABLE_TO_HANZI.setdefault(_toneless(_syllable), _hanzi)

_MAX_SYLLABLE_LEN = max(len(key) for key in _SYLLABLE_TO_HANZI)
_TONE_DIGITS = str.maketrans("", "", "012345")


def _segment_syllables(token: str) -> Optional[list[str]]:
    """Greedy longest-match split of a toneless token into known syllables.

    Returns:
        List of syllables, or None if the token cannot be fully segmented
    """
    syllables: list[str] = []
    position = 0
    while position < len(token):
        for length in range(min(_MAX_SYLLABLE_LEN, len(token) - position), 0, -1):
            candidate = token[position:position + length]
            if candidate in _SYLLABLE_TO_HANZI:
                syllables.append(candidate)
                position += length
                break
        else:
            return None
    return syllables


def pinyin_to_hanzi(text: str) -> str:
    """Transliterate pinyin tokens into Chinese characters.

    Each whitespace token (tone marks and tone digits ignored) is segmented
    into known syllables; tokens that don't segment completely are kept.
    Converted neighbours are joined without spaces, as written Chinese is.

    Args:
        text: Romanized text, e.g. "ni hao" or "nihao"

    Returns:
        Text with recognised syllables replaced, e.g. "你好"
    """
    if not text:
        return text

    pieces: list[tuple[str, bool]] = []
    for word in text.split():
        core, trailing = _TRAILING_PUNCT.match(word).groups()
        key = _toneless(core).translate(_TONE_DIGITS)
        syllables = _segment_syllables(key) if key.isalpha() else None
        if syllables:
            pieces.append(("".join(_SYLLABLE_TO_HANZI[s] for s in syllables) + trailing, True))
        else:
            pieces.append((word, False))

    output = ""
    previous_converted = False
    for piece, converted in pieces:
        if output and not (converted and previous_converted):
            output += " "
        output += piece
        previous_converted = converted
    return output


def hanzi_to_pinyin(text: str) -> str:
    """Replace known Chinese characters with toned pinyin syllables.

    Args:
        text: Chinese text, e.g. "你好"

    Returns:
        Space-separated syllables with other characters kept, e.g. "nǐ hǎo"
    """
    if not text:
        return text

    output: list[str] = []
    previous_syllable = False
    for char in text:
        syllable = _HANZI_TO_SYLLABLE.get(char)
        if syllable is not None:
            if output and not output[-1].isspace():
                output.append(" ")
            output.append(syllable)
            previous_syllable = True
        else:
            if previous_syllable and char.isalnum():
                output.append(" ")
            output.append(char)
            previous_syllable = False
    return "".join(output)


def normalize(text: str, mode: ConversionMode) -> str:
    """Apply the conversion for mode, leaving text unchanged on failure.

    Args:
        text: Transcript text
        mode: Conversion to apply

    Returns:
        Converted text
    """
    if not text or mode is ConversionMode.NONE:
        return text or ""

    try:
        if mode is ConversionMode.NUMERALS:
            return numerals_to_digits(text)
        if mode is ConversionMode.PINYIN_TO_HANZI:
            return pinyin_to_hanzi(text)
        if mode is ConversionMode.HANZI_TO_PINYIN:
            return hanzi_to_pinyin(text)
    except Exception:
        logger.exception("ScriptConverter: %s conversion failed, keeping input", mode.name)
    return text
