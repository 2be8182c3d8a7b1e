"""提示词模板加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 Markdown 模板，
模板中的 {context} 占位符会被替换为 OCR 识别出的原文。
"""

from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent
CONTEXT_PLACEHOLDER = "{context}"


def load_prompt(name: str, locale: str = "ja") -> str:
    """加载名为 name 的模板文本（不含扩展名）。"""

    fname = PROMPTS_DIR / locale / f"{name}.md"
    return fname.read_text(encoding="utf-8")


def render_prompt(name: str, context: str, locale: str = "ja") -> str:
    """渲染模板。

    原文可能包含花括号，因此不用 str.format，只做字面替换。
    """

    template = load_prompt(name, locale).rstrip("\n")
    return template.replace(CONTEXT_PLACEHOLDER, context)
