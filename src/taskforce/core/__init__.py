"""TaskForce Core -- 领域模型 + SQLite 持久化 + 历史日志"""
