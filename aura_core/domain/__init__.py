"""领域层模型与协议。

包含：
- models: Message / Turn / ProviderCandidate / ChatRequest / ChatReply 模型。
- conversation: 历史记录模型及 HistoryStore 抽象。
- exceptions: 业务异常类型定义。
"""
