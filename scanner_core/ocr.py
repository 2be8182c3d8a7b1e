"""OCR 协作方接口。

文本识别引擎本身不在本包范围内，这里只定义调用约定：
extract(image) 返回按阅读顺序排列的文本行，识别失败抛 ExtractionError。
"""

from typing import Any, Optional, Protocol, Sequence

from scanner_core.domain.exceptions import ExtractionError


class TextExtractor(Protocol):
    def extract(self, image: Any) -> Sequence[Optional[str]]:
        ...


def recognize_context(extractor: TextExtractor, image: Any) -> str:
    """识别图片并把文本行用换行拼接，作为对话的原始上下文。

    没有候选结果的行（None）会被跳过。
    """
    try:
        lines = extractor.extract(image)
    except ExtractionError:
        raise
    except Exception as exc:  # noqa: BLE001 - 第三方 OCR 引擎的异常统一包装
        raise ExtractionError(code=ExtractionError.EXTRACTION_FAILED, message=str(exc) or exc.__class__.__name__) from exc
    return "\n".join(line for line in lines if line is not None)
