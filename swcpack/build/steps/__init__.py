"""构建步骤：库构建流水线和摘要修补流水线"""
