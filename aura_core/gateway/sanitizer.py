"""人设输出清洗：统一大写并规整空白，不增删内容。

sanitize(sanitize(x)) == sanitize(x)。
"""


class OutputSanitizer:
    def __init__(self, uppercase: bool = True):
        self._uppercase = uppercase

    def sanitize(self, text: str) -> str:
        # 行内连续空白压成一个空格，保留换行
        lines = [" ".join(line.split()) for line in text.split("\n")]
        out = "\n".join(lines).strip()
        if self._uppercase:
            out = out.upper()
        return out


def sanitize(text: str) -> str:
    return OutputSanitizer().sanitize(text)
