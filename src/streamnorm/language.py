"""Language code canonicalization.

Stream language tags arrive as ISO 639-1 (2-letter), ISO 639-2/B or
ISO 639-2/T (3-letter) codes, or occasionally as full English names.
streamnorm compares and displays languages by their canonical English
name ("English", "Japanese"), so every form is resolved to that name.
"""

import logging

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"

# (ISO 639-1, ISO 639-2/B, English name)
_LANGUAGES: tuple[tuple[str, str, str], ...] = (
    ("aa", "aar", "Afar"),
    ("ab", "abk", "Abkhazian"),
    ("af", "afr", "Afrikaans"),
    ("am", "amh", "Amharic"),
    ("ar", "ara", "Arabic"),
    ("as", "asm", "Assamese"),
    ("ay", "aym", "Aymara"),
    ("az", "aze", "Azerbaijani"),
    ("ba", "bak", "Bashkir"),
    ("be", "bel", "Belarusian"),
    ("bg", "bul", "Bulgarian"),
    ("bh", "bih", "Bihari"),
    ("bi", "bis", "Bislama"),
    ("bn", "ben", "Bengali"),
    ("bo", "tib", "Tibetan"),
    ("br", "bre", "Breton"),
    ("bs", "bos", "Bosnian"),
    ("ca", "cat", "Catalan"),
    ("co", "cos", "Corsican"),
    ("cs", "cze", "Czech"),
    ("cy", "wel", "Welsh"),
    ("da", "dan", "Danish"),
    ("de", "ger", "German"),
    ("dz", "dzo", "Dzongkha"),
    ("el", "gre", "Greek"),
    ("en", "eng", "English"),
    ("eo", "epo", "Esperanto"),
    ("es", "spa", "Spanish"),
    ("et", "est", "Estonian"),
    ("eu", "baq", "Basque"),
    ("fa", "per", "Persian"),
    ("fi", "fin", "Finnish"),
    ("fj", "fij", "Fijian"),
    ("fo", "fao", "Faroese"),
    ("fr", "fre", "French"),
    ("fy", "fry", "Western Frisian"),
    ("ga", "gle", "Irish"),
    ("gd", "gla", "Scottish Gaelic"),
    ("gl", "glg", "Galician"),
    ("gn", "grn", "Guarani"),
    ("gu", "guj", "Gujarati"),
    ("ha", "hau", "Hausa"),
    ("he", "heb", "Hebrew"),
    ("hi", "hin", "Hindi"),
    ("hr", "hrv", "Croatian"),
    ("hu", "hun", "Hungarian"),
    ("hy", "arm", "Armenian"),
    ("ia", "ina", "Interlingua"),
    ("id", "ind", "Indonesian"),
    ("ie", "ile", "Interlingue"),
    ("ik", "ipk", "Inupiaq"),
    ("is", "ice", "Icelandic"),
    ("it", "ita", "Italian"),
    ("iu", "iku", "Inuktitut"),
    ("ja", "jpn", "Japanese"),
    ("jv", "jav", "Javanese"),
    ("ka", "geo", "Georgian"),
    ("kk", "kaz", "Kazakh"),
    ("kl", "kal", "Kalaallisut"),
    ("km", "khm", "Khmer"),
    ("kn", "kan", "Kannada"),
    ("ko", "kor", "Korean"),
    ("ks", "kas", "Kashmiri"),
    ("ku", "kur", "Kurdish"),
    ("ky", "kir", "Kyrgyz"),
    ("la", "lat", "Latin"),
    ("lb", "ltz", "Luxembourgish"),
    ("ln", "lin", "Lingala"),
    ("lo", "lao", "Lao"),
    ("lt", "lit", "Lithuanian"),
    ("lv", "lav", "Latvian"),
    ("mg", "mlg", "Malagasy"),
    ("mi", "mao", "Maori"),
    ("mk", "mac", "Macedonian"),
    ("ml", "mal", "Malayalam"),
    ("mn", "mon", "Mongolian"),
    ("mr", "mar", "Marathi"),
    ("ms", "may", "Malay"),
    ("mt", "mlt", "Maltese"),
    ("my", "bur", "Burmese"),
    ("na", "nau", "Nauru"),
    ("nb", "nob", "Norwegian Bokmal"),
    ("ne", "nep", "Nepali"),
    ("nl", "dut", "Dutch"),
    ("nn", "nno", "Norwegian Nynorsk"),
    ("no", "nor", "Norwegian"),
    ("oc", "oci", "Occitan"),
    ("om", "orm", "Oromo"),
    ("or", "ori", "Oriya"),
    ("pa", "pan", "Punjabi"),
    ("pl", "pol", "Polish"),
    ("ps", "pus", "Pashto"),
    ("pt", "por", "Portuguese"),
    ("qu", "que", "Quechua"),
    ("rm", "roh", "Romansh"),
    ("rn", "run", "Rundi"),
    ("ro", "rum", "Romanian"),
    ("ru", "rus", "Russian"),
    ("rw", "kin", "Kinyarwanda"),
    ("sa", "san", "Sanskrit"),
    ("sd", "snd", "Sindhi"),
    ("se", "sme", "Northern Sami"),
    ("sg", "sag", "Sango"),
    ("si", "sin", "Sinhala"),
    ("sk", "slo", "Slovak"),
    ("sl", "slv", "Slovenian"),
    ("sm", "smo", "Samoan"),
    ("sn", "sna", "Shona"),
    ("so", "som", "Somali"),
    ("sq", "alb", "Albanian"),
    ("sr", "srp", "Serbian"),
    ("ss", "ssw", "Swati"),
    ("st", "sot", "Southern Sotho"),
    ("su", "sun", "Sundanese"),
    ("sv", "swe", "Swedish"),
    ("sw", "swa", "Swahili"),
    ("ta", "tam", "Tamil"),
    ("te", "tel", "Telugu"),
    ("tg", "tgk", "Tajik"),
    ("th", "tha", "Thai"),
    ("ti", "tir", "Tigrinya"),
    ("tk", "tuk", "Turkmen"),
    ("tl", "tgl", "Tagalog"),
    ("tn", "tsn", "Tswana"),
    ("to", "ton", "Tonga"),
    ("tr", "tur", "Turkish"),
    ("ts", "tso", "Tsonga"),
    ("tt", "tat", "Tatar"),
    ("tw", "twi", "Twi"),
    ("ug", "uig", "Uyghur"),
    ("uk", "ukr", "Ukrainian"),
    ("ur", "urd", "Urdu"),
    ("uz", "uzb", "Uzbek"),
    ("vi", "vie", "Vietnamese"),
    ("vo", "vol", "Volapuk"),
    ("wo", "wol", "Wolof"),
    ("xh", "xho", "Xhosa"),
    ("yi", "yid", "Yiddish"),
    ("yo", "yor", "Yoruba"),
    ("za", "zha", "Zhuang"),
    ("zh", "chi", "Chinese"),
    ("zu", "zul", "Zulu"),
)

# ISO 639-2/T codes that differ from their bibliographic counterpart
_ISO_639_2T_TO_639_2B: dict[str, str] = {
    "bod": "tib",
    "ces": "cze",
    "cym": "wel",
    "deu": "ger",
    "ell": "gre",
    "eus": "baq",
    "fas": "per",
    "fra": "fre",
    "hye": "arm",
    "isl": "ice",
    "kat": "geo",
    "mkd": "mac",
    "mri": "mao",
    "msa": "may",
    "mya": "bur",
    "nld": "dut",
    "ron": "rum",
    "slk": "slo",
    "sqi": "alb",
    "zho": "chi",
}

# 3-letter codes without a 2-letter equivalent that still show up in files
_ISO_639_2_ONLY: dict[str, str] = {
    "fil": "Filipino",
    "haw": "Hawaiian",
    "yue": "Cantonese",
    "cmn": "Mandarin",
    "mul": "Multiple languages",
    "zxx": "No linguistic content",
}

_ALPHA2_NAMES: dict[str, str] = {a2: name for a2, _, name in _LANGUAGES}
_ALPHA3_NAMES: dict[str, str] = {
    **{a3: name for _, a3, name in _LANGUAGES},
    **_ISO_639_2_ONLY,
}
_ALPHA3_NAMES.update(
    {t: _ALPHA3_NAMES[b] for t, b in _ISO_639_2T_TO_639_2B.items()}
)
_CANONICAL_NAMES: dict[str, str] = {
    name.casefold(): name for name in _ALPHA3_NAMES.values()
}


def normalize_language(code: str | None) -> str:
    """Resolve a language tag to its canonical English name.

    Args:
        code: ISO 639-1 code, ISO 639-2 (B or T) code, or a language name.
            Case-insensitive; surrounding whitespace is ignored.

    Returns:
        The English language name, or "Unknown" when the tag is absent or
        a 2/3-letter code is not recognized. Other values are treated as
        names: known names are returned in canonical form, anything else
        is passed through with its first letter capitalized.

    Examples:
        >>> normalize_language("en")
        'English'
        >>> normalize_language("deu")
        'German'
        >>> normalize_language("french")
        'French'
        >>> normalize_language("xx")
        'Unknown'
    """
    if code is None:
        return UNKNOWN
    code = code.strip()
    if not code:
        return UNKNOWN

    lowered = code.casefold()
    if len(code) == 2:
        return _ALPHA2_NAMES.get(lowered, UNKNOWN)
    if len(code) == 3:
        return _ALPHA3_NAMES.get(lowered, UNKNOWN)

    canonical = _CANONICAL_NAMES.get(lowered)
    if canonical is not None:
        return canonical
    return code[0].upper() + code[1:]


def is_known_language(value: str | None) -> bool:
    """Return True if value resolves to a language in the lookup tables.

    Unlike normalize_language, free-form names that are merely passed
    through do not count as known.
    """
    if not value or not value.strip():
        return False
    value = value.strip()
    if len(value) in (2, 3):
        return normalize_language(value) != UNKNOWN
    return value.casefold() in _CANONICAL_NAMES


def languages_match(a: str | None, b: str | None) -> bool:
    """Check whether two language tags name the same known language."""
    name_a = normalize_language(a)
    if name_a == UNKNOWN:
        return False
    return name_a == normalize_language(b)
