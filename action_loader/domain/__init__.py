"""领域层 - 值对象、领域服务、异常"""
