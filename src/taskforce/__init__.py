"""TaskForce -- 工单编排引擎

子包：
  taskforce.core       领域模型、存储、事务与 Projection
  taskforce.directory  外部协作方（员工目录、团队注册表、通知下发）
  taskforce.gateway    FastAPI 网关与业务编排服务
"""
