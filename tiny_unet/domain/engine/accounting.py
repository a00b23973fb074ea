"""Parameter accounting for the tiny U-Net."""
from tiny_unet.domain.entities.layers import LinearLayer
from tiny_unet.domain.entities.models import TinyUNet


def _linear_count(layer: LinearLayer) -> int:
    return layer.input_dim * layer.output_dim + layer.bias.shape[0]


def parameter_breakdown(model: TinyUNet) -> dict[str, int]:
    """
    Count parameters per model component.

    Parameters
    ----------
    model : TinyUNet
        Model to inspect.

    Returns
    -------
    dict[str, int]
        Insertion-ordered mapping such as ``{"time_embed_mlp.hidden_layer": 8,
        ..., "inputConv": 20, "inputConv.projection": 18, ...}``.
    """
    breakdown = {
        "time_embed_mlp.hidden_layer": _linear_count(model.time_embed_mlp.hidden_layer),
        "time_embed_mlp.output_layer": _linear_count(model.time_embed_mlp.output_layer),
    }
    for layer in model.conv_layers:
        # Kernels: out x in x 3 x 3, plus one bias per output channel
        breakdown[layer.name] = layer.out_channels * layer.in_channels * 9 + layer.out_channels
        if layer.projection is not None:
            breakdown[f"{layer.name}.projection"] = (
                layer.projection.embedding_dim * layer.projection.output_dim
                + layer.projection.bias.shape[0]
            )
    return breakdown


def count_parameters(model: TinyUNet) -> int:
    """Total number of weights and biases used by the forward pass."""
    return sum(parameter_breakdown(model).values())
