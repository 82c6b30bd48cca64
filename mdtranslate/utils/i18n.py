# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os


MESSAGES = {
    "en": {
        "config_errors": "Errors:",
        "missing_api_key": "The OPENAI_API_KEY environment variable is not set.",
        "missing_prompt_file": "The prompt file \"{path}\" does not exist.",
        "file_not_found": "File not found: {path}",
        "invalid_encoding": "{path} is not valid UTF-8: {error}",
        "no_input_files": "No Markdown files found in: {paths}",
        "translating": "Translating {path}...",
        "model_info": "Model: {model}, Temperature: {temperature}",
        "already_done": "Skipping {path} (already translated).",
        "translation_done": "Translation done! Saved to {path}.",
        "translation_failed": "Translation of {path} failed: {error}",
        "write_failed": "Could not write {path}: {error}",
        "ledger_invalid": "Completion ledger {path} is unreadable: {error}",
        "invalid_temperature": "Temperature must be between 0 and 1, got {value}.",
        "invalid_fragment_size": "Fragment size must be a positive number of tokens, got {value}.",
    },
    "zh": {
        "config_errors": "错误:",
        "missing_api_key": "未设置 OPENAI_API_KEY 环境变量。",
        "missing_prompt_file": "提示词文件 \"{path}\" 不存在。",
        "file_not_found": "找不到文件: {path}",
        "invalid_encoding": "{path} 不是有效的 UTF-8 文本: {error}",
        "no_input_files": "未找到 Markdown 文件: {paths}",
        "translating": "正在翻译 {path}...",
        "model_info": "模型: {model}, 温度: {temperature}",
        "already_done": "跳过 {path} (已翻译)。",
        "translation_done": "翻译完成！已保存到 {path}。",
        "translation_failed": "{path} 翻译失败: {error}",
        "write_failed": "无法写入 {path}: {error}",
        "ledger_invalid": "无法读取完成记录 {path}: {error}",
        "invalid_temperature": "温度必须在 0 到 1 之间，当前为 {value}。",
        "invalid_fragment_size": "片段大小必须为正数，当前为 {value}。",
    },
}


def t(key: str, *, lang: str | None = None, **kwargs) -> str:
    l = (lang or os.getenv("MDTRANSLATE_LANG") or "en").lower()
    if l not in MESSAGES:
        l = "en"
    msg = MESSAGES.get(l, {}).get(key) or MESSAGES["en"].get(key) or key
    try:
        return msg.format(**kwargs)
    except (KeyError, IndexError):
        return msg
