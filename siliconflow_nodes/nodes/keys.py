# resource / operation
PARAM_RESOURCE = "resource"
PARAM_OPERATION = "operation"

RESOURCE_CHAT = "chat"
RESOURCE_VISION = "vision"
RESOURCE_EMBEDDINGS = "embeddings"
RESOURCE_RERANK = "rerank"

OPERATION_COMPLETE = "complete"
OPERATION_ANALYZE = "analyze"
OPERATION_CREATE = "create"

# chat
PARAM_MODEL = "model"
PARAM_MESSAGES = "messages"
PARAM_MESSAGE_VALUES = "messageValues"
PARAM_PROMPT = "prompt"
PARAM_OUTPUT_MODE = "outputMode"
PARAM_ADDITIONAL_FIELDS = "additionalFields"
PARAM_RESPONSE_FORMAT_VALUES = "formatValues"

# vision
PARAM_VISION_MODEL = "visionModel"
PARAM_IMAGES = "images"
PARAM_IMAGE_VALUES = "imageValues"
PARAM_VISION_PROMPT = "visionPrompt"
PARAM_VISION_ADDITIONAL_FIELDS = "visionAdditionalFields"
IMAGE_SOURCE_TYPE_KEY = "sourceType"
IMAGE_URL_KEY = "imageUrl"
IMAGE_BASE64_KEY = "base64Data"
IMAGE_BINARY_PROPERTY_KEY = "binaryProperty"
IMAGE_FORMAT_KEY = "imageFormat"
IMAGE_DETAIL_KEY = "detail"

# embeddings
PARAM_EMBEDDING_MODEL = "embeddingModel"
PARAM_INPUT = "input"
PARAM_EMBEDDING_ADDITIONAL_FIELDS = "embeddingAdditionalFields"

# rerank
PARAM_RERANK_MODEL = "rerankModel"
PARAM_QUERY = "query"
PARAM_DOCUMENTS = "documents"
PARAM_RERANK_ADDITIONAL_FIELDS = "rerankAdditionalFields"

# output
RAW_RESPONSE_KEY = "_rawResponse"
ERROR_KEY = "error"
