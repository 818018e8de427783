from config.settings import (
    LLAMA_MAX_TOKENS,
    LLAMA_N_BATCH,
    LLAMA_N_CTX,
    LLAMA_N_GPU_LAYERS,
    LLAMA_N_THREADS,
    LLAMA_REPEAT_PENALTY,
    LLAMA_SEED,
    LLAMA_TEMPERATURE,
    LLAMA_TOP_K,
    LLAMA_TOP_P,
    LLAMA_USE_GPU,
    LLAMA_VERBOSE,
    LLM_PATH,
    OLLAMA_MODEL,
    OLLAMA_URL,
)


class LlamaParamStrategy:
    """Builds constructor and sampling parameters for the generation backends."""

    def __init__(self, use_gpu: bool = LLAMA_USE_GPU):
        self.use_gpu = use_gpu

    def get_model_params(self):
        params = {
            "model_path": LLM_PATH,
            "n_ctx": LLAMA_N_CTX,
            "n_gpu_layers": LLAMA_N_GPU_LAYERS,
            "n_threads": LLAMA_N_THREADS,
            "n_batch": LLAMA_N_BATCH,
            "verbose": LLAMA_VERBOSE,
            "seed": LLAMA_SEED,
        }
        if not self.use_gpu:
            del params["n_gpu_layers"]
        return params

    def get_sampling_params(self):
        return {
            "temperature": LLAMA_TEMPERATURE,
            "top_k": LLAMA_TOP_K,
            "top_p": LLAMA_TOP_P,
            "repeat_penalty": LLAMA_REPEAT_PENALTY,
            "max_tokens": LLAMA_MAX_TOKENS,
        }

    def get_ollama_params(self):
        return {
            "base_url": OLLAMA_URL,
            "model": OLLAMA_MODEL,
            "temperature": LLAMA_TEMPERATURE,
            "top_k": LLAMA_TOP_K,
            "top_p": LLAMA_TOP_P,
            "repeat_penalty": LLAMA_REPEAT_PENALTY,
            "num_predict": LLAMA_MAX_TOKENS,
            "seed": LLAMA_SEED,
        }
