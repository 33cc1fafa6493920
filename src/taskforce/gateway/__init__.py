"""TaskForce Gateway -- FastAPI 应用与业务编排服务"""
