# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
default_params = {
    "base_url": "https://api.openai.com/v1",
    "model": "3",
    "temperature": 0.1,
    "fragment_size": 2048,
    "api_call_interval": 0.0,
    "timeout": 600,
    "prompt_file": "prompt.md",
    "ledger": "dones.json",
}
