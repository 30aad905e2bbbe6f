"""Database seeder for local development of the blog API."""
import argparse
import asyncio
import random
import time
from datetime import datetime, timedelta, timezone

from blogapi.config import Settings
from blogapi.database import Base, build_engine, build_session_factory
from blogapi.models import Comment, Like, Post, PostImage, Tag, User
from blogapi.passwords import hash_password

TAGS = ["python", "fastapi", "postgresql", "docker", "kubernetes",
        "react", "typescript", "aws", "devops", "testing", "performance",
        "security", "microservices", "graphql", "rest-api"]

# Every seeded account signs in with this password.
SEED_PASSWORD = "password123"


async def seed(settings: Settings, small: bool = False):
    num_users = 5 if small else 25
    num_posts = 50 if small else 1000
    max_comments_per_post = 2 if small else 5

    print(f"Seeding: {num_users} users, {num_posts} posts")
    start = time.perf_counter()

    engine = build_engine(settings)
    session_factory = build_session_factory(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        tags = [Tag(name=name) for name in TAGS]
        session.add_all(tags)
        await session.flush()
        print(f"  Created {len(tags)} tags")

        # One hash is enough; pbkdf2 salts make each digest distinct anyway.
        password = await hash_password(SEED_PASSWORD)
        users = []
        for i in range(num_users):
            user = User(
                email=f"user_{i:04d}@example.com",
                password=password,
                name=f"User {i}",
                bio=f"I am test user number {i}. I write about technology.",
            )
            session.add(user)
            users.append(user)
        await session.flush()
        print(f"  Created {len(users)} users (password: {SEED_PASSWORD})")

        posts = []
        for i in range(num_posts):
            created = datetime.now(timezone.utc) - timedelta(days=random.randint(0, 365))
            topic = random.choice(TAGS)
            post = Post(
                title=f"Post {i}: notes on {topic}",
                content=f"This is the full content of post {i}. " * 20,
                is_private=random.random() < 0.2,  # 20% private
                created_at=created,
                author_id=random.choice(users).id,
            )
            post.tags = random.sample(tags, k=random.randint(1, 4))
            post.images = [
                PostImage(url=f"https://picsum.photos/seed/{i}-{n}/800/600")
                for n in range(random.randint(0, 2))
            ]
            session.add(post)
            posts.append(post)
        await session.flush()
        print(f"  Created {len(posts)} posts")

        total_likes = 0
        total_comments = 0
        for post in posts:
            for user in random.sample(users, k=random.randint(0, len(users) // 2)):
                session.add(Like(user_id=user.id, post_id=post.id))
                total_likes += 1
            for _ in range(random.randint(0, max_comments_per_post)):
                session.add(Comment(
                    content="Great post! Very helpful for understanding the topic.",
                    user_id=random.choice(users).id,
                    post_id=post.id,
                ))
                total_comments += 1
        await session.commit()

    await engine.dispose()

    elapsed = time.perf_counter() - start
    print(f"\nSeeding complete in {elapsed:.1f}s")
    print(f"  Users: {num_users}")
    print(f"  Posts: {num_posts}")
    print(f"  Likes: {total_likes}")
    print(f"  Comments: {total_comments}")
    print(f"  Tags: {len(TAGS)}")


def main():
    parser = argparse.ArgumentParser(description="Seed the blog database")
    parser.add_argument("--small", action="store_true", help="Use small dataset (50 posts)")
    args = parser.parse_args()
    asyncio.run(seed(Settings(), small=args.small))


if __name__ == "__main__":
    main()
