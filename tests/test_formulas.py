import pytest

from transdoc.formulas import FormulaPreserver, missing_placeholders, restore, strip


def test_inline_math_is_replaced():
    clean, formulas = strip("The formula $E=mc^2$ is famous.")

    assert clean == "The formula __FORMULA_0__ is famous."
    assert formulas == {"__FORMULA_0__": "$E=mc^2$"}


def test_text_without_formulas_is_untouched():
    clean, formulas = strip("Plain prose, nothing to protect.")

    assert clean == "Plain prose, nothing to protect."
    assert formulas == {}


def test_empty_text():
    assert strip("") == ("", {})
    assert restore("", {"__FORMULA_0__": "$x$"}) == ""


def test_placeholders_are_numbered_in_order():
    clean, formulas = strip("a $x$ b $$y$$ c \\(z\\)")

    assert clean == "a __FORMULA_0__ b __FORMULA_1__ c __FORMULA_2__"
    assert list(formulas.values()) == ["$x$", "$$y$$", "\\(z\\)"]


def test_display_math_wins_over_inline():
    clean, formulas = strip("see $$\na + b\n$$ above")

    assert clean == "see __FORMULA_0__ above"
    assert formulas["__FORMULA_0__"] == "$$\na + b\n$$"


def test_environment_is_one_formula():
    text = "\\begin{align} x &= \\frac{1}{2} \\\\ y &= 3 \\end{align}"
    clean, formulas = strip(text)

    assert clean == "__FORMULA_0__"
    assert formulas["__FORMULA_0__"] == text


def test_adjacent_formulas():
    clean, formulas = strip("$a$$b$")

    assert clean == "__FORMULA_0____FORMULA_1__"
    assert formulas == {"__FORMULA_0__": "$a$", "__FORMULA_1__": "$b$"}


def test_commands():
    clean, formulas = strip("Use \\alpha and \\frac{a}{b} here")

    assert formulas == {"__FORMULA_0__": "\\alpha", "__FORMULA_1__": "\\frac{a}"}
    assert clean == "Use __FORMULA_0__ and __FORMULA_1__{b} here"


@pytest.mark.parametrize("text", [
    "no math at all",
    "The formula $E=mc^2$ is famous.",
    "$a$$b$",
    "nested $$ x = \\frac{1}{2} $$ display",
    "\\[ \\int_0^1 f(x)\\,dx \\]",
    "\\begin{equation}\ne^{i\\pi} + 1 = 0\n\\end{equation}",
    "\\section[short]{Long title} with \\textbf{bold}",
    "eleven: " + " ".join(f"${i}$" for i in range(11)),
    "already looks like __FORMULA_0__ and $x$",
])
def test_strip_then_restore_is_identity(text):
    clean, formulas = strip(text)
    assert restore(clean, formulas) == text


def test_restore_does_not_rescan_restored_formulas():
    # A literal placeholder in the source must come back verbatim, not be
    # replaced by another formula
    clean, formulas = strip("keep __FORMULA_1__ then $y$")

    assert formulas == {"__FORMULA_0__": "__FORMULA_1__", "__FORMULA_1__": "$y$"}
    assert restore(clean, formulas) == "keep __FORMULA_1__ then $y$"


def test_double_digit_placeholders_are_not_shadowed():
    formulas = {f"__FORMULA_{i}__": f"$f{i}$" for i in range(12)}
    text = "__FORMULA_1__ __FORMULA_10__ __FORMULA_11__"

    assert restore(text, formulas) == "$f1$ $f10$ $f11$"


def test_restore_ignores_missing_placeholders():
    formulas = {"__FORMULA_0__": "$x$", "__FORMULA_1__": "$y$"}

    assert restore("only __FORMULA_1__ survived", formulas) == "only $y$ survived"


def test_missing_placeholders():
    formulas = {"__FORMULA_0__": "$x$", "__FORMULA_1__": "$y$", "__FORMULA_2__": "$z$"}

    assert missing_placeholders("__FORMULA_2__ and __FORMULA_0__", formulas) == ["__FORMULA_1__"]
    assert missing_placeholders("", formulas) == list(formulas)
    assert missing_placeholders("anything", {}) == []


def test_translated_text_keeps_formulas_in_new_positions():
    clean, formulas = strip("The value $x$ equals $y$.")
    translated = "El valor " + clean.split("value ")[1].replace("equals", "es igual a")

    assert restore(translated, formulas) == "El valor $x$ es igual a $y$."


def test_custom_pattern():
    import re

    preserver = FormulaPreserver(pattern=re.compile(r'\{\{.*?\}\}'))
    clean, formulas = preserver.strip("Hello {{name}}, $x$ stays")

    assert clean == "Hello __FORMULA_0__, $x$ stays"
    assert preserver.restore(clean, formulas) == "Hello {{name}}, $x$ stays"
