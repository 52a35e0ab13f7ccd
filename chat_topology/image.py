"""
Image Builder

The build node only records what to build. ``EcrImageBuilder`` is the
collaborator that actually builds and pushes during apply.
"""

import pulumi
import pulumi_aws as aws
import pulumi_awsx as awsx

from chat_topology.graph import Node


def compose_image(identity, build, cache):
    return Node(
        kind="Image",
        name=identity.name,
        namespaced=False,
        body={
            "context": build.context,
            "dockerfile": build.dockerfile,
            "cacheFrom": {"stages": list(cache.cache_from_stages)},
            "args": dict(cache.build_args),
        },
        outputs={"reference": None},
    )


class EcrImageBuilder:
    """Builds the image and pushes it to an ECR repository of the same name."""

    def __init__(self, platform="linux/amd64", opts=None):
        self.platform = platform
        self.opts = opts

    def build(self, name, context, dockerfile, cache_from_stages=(), args=None):
        repository = aws.ecr.Repository(
            name,
            force_delete=True,
            opts=self.opts,
        )
        after_repository = pulumi.ResourceOptions.merge(self.opts, pulumi.ResourceOptions(depends_on=[repository]))

        # Each cached stage is built and pushed as <repository>:<stage>.
        cache_from = [
            self._stage(name, repository, stage, context, dockerfile, args, after_repository).image_uri
            for stage in cache_from_stages
        ]

        image = awsx.ecr.Image(
            name,
            repository_url=repository.repository_url,
            context=context,
            dockerfile=dockerfile,
            platform=self.platform,
            cache_from=cache_from or None,
            args=args or None,
            opts=after_repository,
        )
        return image.image_uri

    def _stage(self, name, repository, stage, context, dockerfile, args, opts):
        return awsx.ecr.Image(
            f"{name}-{stage}",
            repository_url=repository.repository_url,
            context=context,
            dockerfile=dockerfile,
            platform=self.platform,
            target=stage,
            image_tag=stage,
            args=args or None,
            opts=opts,
        )
