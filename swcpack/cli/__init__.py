"""swcpack 命令行接口"""
